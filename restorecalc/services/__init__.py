"""Service layer used by the CLI, the web app and tests."""

from importlib import import_module

__all__ = [
    "FormSession",
    "ModelStore",
    "export_record",
    "export_filename",
]


def __getattr__(name):
    if name == "FormSession":
        return import_module(".session", __name__).FormSession
    if name == "ModelStore":
        return import_module(".store", __name__).ModelStore
    if name == "export_record":
        return import_module(".exports", __name__).export_record
    if name == "export_filename":
        return import_module(".exports", __name__).export_filename
    raise AttributeError(name)
