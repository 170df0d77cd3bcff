import json
import os
import tempfile
import unittest

from dependents.core.errors import ResultFileError
from dependents.core.models import ResultNode
from dependents.io.output_writer import read_results_json, write_results_json
from dependents.io.render import (
    MD_HEADER,
    build_rows,
    format_downloads,
    format_traffic,
    render_ci,
    render_json,
    render_md,
)


def _tree():
    return [
        ResultNode(
            name="react-dom",
            version="^18.2.0",
            downloads=2_500_000,
            traffic=2_500_000 * 300,
            children=[ResultNode(name="next", version="^18.2.0", downloads=40_000, traffic=4_000)],
        ),
        ResultNode(name="a|b", version="*", downloads=12, traffic=0),
        ResultNode(name="tiny", version="1.0.0-really-long-prerelease.1", downloads=3, traffic=3),
    ]


class FormatterTests(unittest.TestCase):
    def test_downloads(self) -> None:
        self.assertEqual(format_downloads(999), "999")
        self.assertEqual(format_downloads(1_500), "1.50k")
        self.assertEqual(format_downloads(2_500_000), "2.50M")
        self.assertEqual(format_downloads(3_000_000_000), "3.00B")

    def test_traffic(self) -> None:
        self.assertEqual(format_traffic(512), "512 bytes")
        self.assertEqual(format_traffic(2_048), "2.05 KB")
        self.assertEqual(format_traffic(750_000_000), "750.00 MB")
        self.assertEqual(format_traffic(2 * 10**15), "2.00 PB")


class RowTests(unittest.TestCase):
    def test_rows_are_padded_per_level(self) -> None:
        rows = build_rows(_tree())

        self.assertEqual([r.depth for r in rows], [0, 1, 0, 0])
        top = [r for r in rows if r.depth == 0]
        self.assertEqual({len(r.downloads) for r in top}, {len("2.50M")})
        self.assertEqual(top[1].traffic.strip(), "")
        self.assertEqual(top[2].version, "1.0.0-really-lon")
        self.assertEqual(top[0].link, "https://npmx.dev/react-dom")

    def test_number_applies_at_every_level(self) -> None:
        rows = build_rows(_tree(), number=1)
        self.assertEqual([r.name.strip() for r in rows], ["react-dom", "next"])

    def test_md_escapes_pipes_and_skips_children(self) -> None:
        lines = render_md(build_rows(_tree(), nested=False))

        self.assertEqual(lines[0], MD_HEADER)
        self.assertEqual(len(lines), 4)
        self.assertIn("[a\\|b](https://npmx.dev/a\\|b)", lines[2])

    def test_ci_indents_children(self) -> None:
        lines = render_ci(build_rows(_tree()))

        self.assertTrue(lines[1].startswith("  [green]#1"))
        self.assertIn("https://npmx.dev/react-dom", lines[0])

    def test_saved_tree_shows_expanded_nodes_only(self) -> None:
        nodes = _tree()
        nodes[0].expanded = True
        rows = build_rows(nodes)
        self.assertEqual([r.name.strip() for r in rows], ["react-dom", "next"])

    def test_json_cuts_top_level_to_width(self) -> None:
        data = json.loads(render_json(_tree(), width=1))
        self.assertEqual([d["name"] for d in data], ["react-dom"])
        self.assertEqual([c["name"] for c in data[0]["children"]], ["next"])

    def test_json_applies_excludes_and_number(self) -> None:
        data = json.loads(render_json(_tree(), excludes=("react",), number=1))
        self.assertEqual([d["name"] for d in data], ["a|b"])
        self.assertEqual(data[0]["isDevDependency"], False)


class ResultFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_round_trip_renders_same_rows(self) -> None:
        nodes = _tree()
        path = write_results_json(nodes, os.path.join(self.tmp.name, "out", "results.json"))

        loaded = read_results_json(path)

        self.assertEqual(build_rows(loaded, number=2), build_rows(nodes, number=2))
        self.assertEqual(loaded, nodes)

    def test_legacy_entries_without_traffic_load(self) -> None:
        path = os.path.join(self.tmp.name, "legacy.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump([{"name": "x", "downloads": 5, "isDevDependency": True, "error": False, "version": "1"}], f)

        (node,) = read_results_json(path)

        self.assertEqual(node.traffic, 0)
        self.assertEqual(node.children, [])
        self.assertTrue(node.is_dev_dependency)

    def test_invalid_json_raises(self) -> None:
        path = os.path.join(self.tmp.name, "bad.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")

        with self.assertRaises(ResultFileError):
            read_results_json(path)

    def test_wrong_shape_raises(self) -> None:
        path = os.path.join(self.tmp.name, "obj.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"name": "x"}, f)

        with self.assertRaises(ResultFileError):
            read_results_json(path)


if __name__ == "__main__":
    unittest.main()
