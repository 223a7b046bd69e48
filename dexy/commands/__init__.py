import sys


def get_version() -> str:
    try:
        from importlib.metadata import version
        return version("dexy")
    except Exception:
        return "unknown"


def print_version() -> None:
    print(f"dexy {get_version()}", file=sys.stdout)
