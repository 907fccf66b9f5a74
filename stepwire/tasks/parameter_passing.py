"""Example task passing data between actions through the RunContext."""

from typing import Optional

from stepwire.action import Action, BaseAction, require_parameters
from stepwire.actions.file import ReadFileAction, WriteFileAction
from stepwire.exceptions import TypeMismatchError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter, StaticParameter, action_output_field
from stepwire.registry import register_task
from stepwire.resolvers import ParameterResolver
from stepwire.task import Task

READ_ACTION_ID = "read-source-file"
PROCESS_ACTION_ID = "process-content"
WRITE_ACTION_ID = "write-destination-file"


class UppercaseContentAction(BaseAction, ParameterResolver, OutputBuilder):
    """Upper-cases text or bytes taken from another action's output."""

    def __init__(self, content: Parameter, logger=None):
        super().__init__(logger)
        require_parameters(source_content=content)
        self.content_param = content
        self.processed_content = None

    def execute(self, ctx):
        content = self.resolve_generic(ctx, self.content_param, "source content")
        if isinstance(content, (str, bytes)):
            self.processed_content = content.upper()
        else:
            raise TypeMismatchError("str or bytes", type(content).__name__, "source content")
        self.logger.info(
            f"Content processed: {len(content)} -> {len(self.processed_content)}",
            extra={"original_length": len(content)},
        )

    def get_output(self) -> Output:
        return self.build_standard_output(
            self.processed_content,
            self.processed_content is not None,
            {"processed_content": self.processed_content},
        )


@register_task(name="parameter-passing", overwrite=True)
def new_parameter_passing_task(
    source_path: str, destination_path: str, overwrite: bool = True, logger=None
) -> Task:
    """Read a file, upper-case its content and write it to a new file."""
    read = ReadFileAction(logger).with_parameters(
        StaticParameter(source_path), action_id=READ_ACTION_ID
    )
    process = Action(
        UppercaseContentAction(action_output_field(READ_ACTION_ID, "content"), logger),
        name="Process Content",
        action_id=PROCESS_ACTION_ID,
    )
    write = WriteFileAction(logger).with_parameters(
        StaticParameter(destination_path),
        action_output_field(PROCESS_ACTION_ID, "processed_content"),
        StaticParameter(overwrite),
        action_id=WRITE_ACTION_ID,
    )
    return Task(
        "example-parameter-passing",
        "Example Parameter Passing Between Actions",
        [read, process, write],
        logger=logger,
    )
