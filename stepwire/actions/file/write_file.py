from pathlib import Path
from typing import Optional

from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.exceptions import ActionExecutionError, TypeMismatchError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter, StaticParameter
from stepwire.resolvers import ParameterResolver


class WriteFileAction(BaseAction, ParameterResolver, OutputBuilder):
    """Writes str or bytes content to a file, creating parent directories."""

    def __init__(self, logger=None):
        super().__init__(logger)
        self.file_path_param: Optional[Parameter] = None
        self.content_param: Optional[Parameter] = None
        self.overwrite_param: Optional[Parameter] = None
        self.file_path: str = ""
        self.bytes_written = 0
        self.written = False

    def with_parameters(
        self,
        file_path: Parameter,
        content: Parameter,
        overwrite: Optional[Parameter] = None,
        action_id: str = "write-file-action",
    ) -> Action["WriteFileAction"]:
        require_parameters(file_path=file_path, content=content)
        self.file_path_param = file_path
        self.content_param = content
        self.overwrite_param = overwrite if overwrite is not None else StaticParameter(False)
        return ActionConstructor(self.logger).wrap(self, "Write File", action_id)

    def execute(self, ctx):
        self.file_path = self.resolve_string(ctx, self.file_path_param, "file path")
        if not self.file_path:
            raise ActionExecutionError("file path cannot be empty")
        overwrite = self.resolve_bool(ctx, self.overwrite_param, "overwrite")

        # Content may legitimately be text or raw bytes
        content = self.resolve_generic(ctx, self.content_param, "content")
        if isinstance(content, str):
            data = content.encode("utf-8")
        elif isinstance(content, (bytes, bytearray)):
            data = bytes(content)
        else:
            raise TypeMismatchError("str or bytes", type(content).__name__, "content")

        path = Path(self.file_path)
        if path.exists() and not overwrite:
            raise ActionExecutionError(f"file already exists and overwrite is disabled: {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise ActionExecutionError(f"failed to write file {path}: {e}") from e

        self.bytes_written = len(data)
        self.written = True
        self.logger.info(
            f"Wrote {self.bytes_written} bytes to {path}", extra={"file_path": str(path)}
        )

    def get_output(self) -> Output:
        return Output(
            success=self.written,
            fields={"file_path": self.file_path, "bytes_written": self.bytes_written},
        )
