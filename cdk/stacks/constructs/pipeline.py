"""
Delivery pipeline: GitHub source, CodeBuild build, CodeDeploy deploy
"""

import logging

import aws_cdk as cdk
from aws_cdk import (
    aws_codebuild as codebuild,
    aws_codedeploy as codedeploy,
    aws_codepipeline as codepipeline,
    aws_codepipeline_actions as codepipeline_actions,
)
from constructs import Construct
from typing import Dict

from ..config import StackConfig
from ..errors import PipelineDefinitionError
from ..topology import ActionSpec, DeploymentTarget, PipelineSpec

logger = logging.getLogger(__name__)


class PipelineConstruct(Construct):
    """
    Renders a validated pipeline declaration.

    Artifacts are created once per declared name and shared between the
    action that produces them and the actions that consume them.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 pipeline_spec: PipelineSpec,
                 deployment_target: DeploymentTarget,
                 build_project: codebuild.IProject,
                 config: StackConfig,
                 **kwargs) -> None:
        super().__init__(scope, construct_id)

        pipeline_spec.validate()

        self.pipeline_spec = pipeline_spec
        self.deployment_target = deployment_target
        self.build_project = build_project
        self.config = config
        self.artifacts: Dict[str, codepipeline.Artifact] = {}

        self._create_deployment_group()

        self._create_pipeline()

    def _create_deployment_group(self) -> None:
        """Create the CodeDeploy application and its tag-selected deployment group"""
        self.deploy_application = codedeploy.ServerApplication(
            self, "springboot_deploy_application",
            application_name=self.config.codedeploy_application
        )

        self.deployment_group = codedeploy.ServerDeploymentGroup(
            self, "SpringBootAppDeployGroup",
            application=self.deploy_application,
            deployment_group_name=self.config.deployment_group_name,
            install_agent=True,
            ec2_instance_tags=codedeploy.InstanceTagSet(*self.deployment_target.tag_groups)
        )

        logger.info("Deployment group %s selects instances tagged %s",
                    self.config.deployment_group_name, self.deployment_target.tag_selector)

    def _create_pipeline(self) -> None:
        self.pipeline = codepipeline.Pipeline(
            self, "springboot-web-pipeline",
            pipeline_name=self.pipeline_spec.name,
            cross_account_keys=False
        )

        for stage_spec in self.pipeline_spec.stages:
            stage = self.pipeline.add_stage(stage_name=stage_spec.name)
            for action_spec in stage_spec.actions:
                stage.add_action(self._create_action(action_spec))

    def _artifact(self, name: str) -> codepipeline.Artifact:
        if name not in self.artifacts:
            self.artifacts[name] = codepipeline.Artifact(name)
        return self.artifacts[name]

    def _create_action(self, action_spec: ActionSpec) -> codepipeline.IAction:
        expected = {"source": (0, 1), "build": (1, None), "deploy": (1, 0)}.get(action_spec.kind)
        if expected:
            inputs, outputs = expected
            if len(action_spec.inputs) != inputs or (outputs is not None and len(action_spec.outputs) != outputs):
                raise PipelineDefinitionError(
                    f"{action_spec.kind} action {action_spec.name} takes {inputs} input(s) "
                    f"and {'any' if outputs is None else outputs} output(s)")

        if action_spec.kind == "source":
            return self._create_source_action(action_spec)
        if action_spec.kind == "build":
            return self._create_build_action(action_spec)
        if action_spec.kind == "deploy":
            return self._create_deploy_action(action_spec)
        raise PipelineDefinitionError(
            f"Unknown action kind {action_spec.kind!r} for {action_spec.name}")

    def _create_source_action(self, action_spec: ActionSpec) -> codepipeline.IAction:
        """GitHub source triggered by webhook on the configured branch"""
        return codepipeline_actions.GitHubSourceAction(
            action_name=action_spec.name,
            oauth_token=cdk.SecretValue.secrets_manager(self.config.github_token_secret),
            owner=self.config.github_owner,
            repo=self.config.github_repo,
            branch=self.config.github_branch,
            output=self._artifact(action_spec.outputs[0])
        )

    def _create_build_action(self, action_spec: ActionSpec) -> codepipeline.IAction:
        return codepipeline_actions.CodeBuildAction(
            action_name=action_spec.name,
            project=self.build_project,
            input=self._artifact(action_spec.inputs[0]),
            outputs=[self._artifact(name) for name in action_spec.outputs]
        )

    def _create_deploy_action(self, action_spec: ActionSpec) -> codepipeline.IAction:
        return codepipeline_actions.CodeDeployServerDeployAction(
            action_name=action_spec.name,
            input=self._artifact(action_spec.inputs[0]),
            deployment_group=self.deployment_group
        )

    @property
    def pipeline_name(self) -> str:
        return self.pipeline.pipeline_name
