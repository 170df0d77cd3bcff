class DependentsError(Exception):
    pass


class DataSourceError(DependentsError):
    pass


class DependentsFetchError(DataSourceError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(DependentsFetchError):
    hint = "Please supply username and password with --user and --password."


class PackageResolutionError(DependentsError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Failed to fetch package info for {name}: {reason}")
        self.name = name
        self.reason = reason


class ResultFileError(DependentsError):
    pass
