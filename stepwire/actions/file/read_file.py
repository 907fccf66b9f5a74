from pathlib import Path
from typing import Optional

from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.exceptions import ActionExecutionError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter
from stepwire.resolvers import ParameterResolver


class ReadFileAction(BaseAction, ParameterResolver, OutputBuilder):
    """Reads a file and publishes its content.

    Output keys: ``content`` (str, or bytes when ``binary``), ``file_path``,
    ``size``.
    """

    def __init__(self, logger=None, binary: bool = False):
        super().__init__(logger)
        self.binary = binary
        self.file_path_param: Optional[Parameter] = None
        self.file_path: str = ""
        self.content = None
        self.size = 0

    def with_parameters(
        self, file_path: Parameter, action_id: str = "read-file-action"
    ) -> Action["ReadFileAction"]:
        require_parameters(file_path=file_path)
        self.file_path_param = file_path
        return ActionConstructor(self.logger).wrap(self, "Read File", action_id)

    def execute(self, ctx):
        self.file_path = self.resolve_string(ctx, self.file_path_param, "file path")
        if not self.file_path:
            raise ActionExecutionError("file path cannot be empty")

        path = Path(self.file_path)
        if not path.is_file():
            raise ActionExecutionError(f"file does not exist: {self.file_path}")
        try:
            raw = path.read_bytes()
            self.content = raw if self.binary else raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ActionExecutionError(f"failed to read file {self.file_path}: {e}") from e
        self.size = len(raw)

        self.logger.info(
            f"Read {self.size} bytes from {self.file_path}",
            extra={"file_path": self.file_path},
        )

    def get_output(self) -> Output:
        return Output(
            success=self.content is not None,
            fields={
                "content": self.content,
                "file_path": self.file_path,
                "size": self.size,
            },
        )
