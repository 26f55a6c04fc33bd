"""
CodeBuild Construct for the application build project
"""

from aws_cdk import (
    aws_codebuild as codebuild,
    Tags,
)
from constructs import Construct
from typing import Dict, Optional


class CodeBuildConstruct(Construct):
    """
    Manages the CodeBuild project used by the pipeline Build stage.

    The project has no source of its own: CodePipeline hands it the source
    artifact and the build spec comes from buildspec.yml in the repository.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 application_name: str,
                 environment_variables: Optional[Dict[str, str]] = None,
                 **kwargs) -> None:
        super().__init__(scope, construct_id)

        self.application_name = application_name
        self.environment_variables = environment_variables or {}

        self._create_build_project()

        self._apply_tags()

    def _create_build_project(self) -> None:
        """Create the pipeline project on the Amazon Linux 2 standard image"""
        self.build_project = codebuild.PipelineProject(
            self, "springBootTestProject",
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.AMAZON_LINUX_2_5,
                environment_variables={
                    key: codebuild.BuildEnvironmentVariable(value=value)
                    for key, value in self.environment_variables.items()
                }
            )
        )

    def _apply_tags(self) -> None:
        Tags.of(self.build_project).add("Project", self.application_name)
        Tags.of(self.build_project).add("ProjectType", "ApplicationBuild")

    @property
    def build_project_name(self) -> str:
        """Returns the CodeBuild project name"""
        return self.build_project.project_name
