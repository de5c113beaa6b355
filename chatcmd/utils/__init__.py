from chatcmd.utils.helpers import configure_logging, import_object, truncate

__all__ = ["configure_logging", "import_object", "truncate"]
