from stepwire.actions.file.read_file import ReadFileAction
from stepwire.actions.file.write_file import WriteFileAction

__all__ = ["ReadFileAction", "WriteFileAction"]
