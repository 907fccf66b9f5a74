#!/usr/bin/env python3
"""Example of writing a custom action and registering a task for it.

The action resolves its parameters through the typed resolvers, so a
wrongly typed or missing reference fails with a message naming the role
("image name") instead of a bare type error.
"""

from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.actions.utility import WaitAction
from stepwire.exceptions import ResolutionError, TaskExecutionError
from stepwire.output import OutputBuilder
from stepwire.parameters import StaticParameter, action_output_field
from stepwire.registry import build_task, register_task
from stepwire.resolvers import ParameterResolver
from stepwire.task import Task


class TagImageAction(BaseAction, ParameterResolver, OutputBuilder):
    """Derives a release tag for an image."""

    def __init__(self, logger=None):
        super().__init__(logger)
        self.image_param = None
        self.version_param = None
        self.tag = ""

    def with_parameters(self, image, version) -> Action["TagImageAction"]:
        require_parameters(image_name=image, version=version)
        self.image_param = image
        self.version_param = version
        return ActionConstructor(self.logger).wrap(self, "Tag Image")

    def execute(self, ctx):
        image = self.resolve_string(ctx, self.image_param, "image name")
        version = self.resolve_string(ctx, self.version_param, "version")
        self.tag = f"{image}:{version}"

    def get_output(self):
        return self.build_standard_output(self.tag, bool(self.tag), {"tag": self.tag})


class ReportAction(BaseAction, ParameterResolver):
    def __init__(self, tag, logger=None):
        super().__init__(logger)
        self.tag_param = tag

    def execute(self, ctx):
        print(f"Release tag: {self.resolve_string(ctx, self.tag_param, 'release tag')}")


@register_task(name="tag-release", version="1.0.0")
def new_tag_release_task(image, version, logger=None) -> Task:
    """Tag an image, pause briefly, then report the tag."""
    tag = TagImageAction(logger).with_parameters(StaticParameter(image), StaticParameter(version))
    pause = WaitAction(logger).with_parameters(StaticParameter("100ms"))
    report = Action(ReportAction(action_output_field(tag.id, "tag")), name="Report")
    return Task("tag-release", "Tag release", [tag, pause, report], logger=logger)


def main():
    build_task("tag-release", image="registry.local/app").run()

    # A number where a string is expected fails with the role in the message
    try:
        build_task("tag-release", image="registry.local/app", version=2).run()
    except TaskExecutionError as e:
        cause = e.__cause__
        if isinstance(cause, ResolutionError):
            print(f"{cause.kind.value}: {cause}")


if __name__ == "__main__":
    main()
