import aws_cdk as cdk
import pytest
from aws_cdk import aws_codebuild as codebuild
from aws_cdk.assertions import Template

from stacks.config import StackConfig
from stacks.constructs.pipeline import PipelineConstruct
from stacks.errors import PipelineDefinitionError
from stacks.topology import ActionSpec, DeploymentTarget, FleetSpec, PipelineSpec, StageSpec, declare

FLEET = FleetSpec("web_server", 2, "t3", "nano", tags={"application-name": "java-web", "stage": "prod"})


def _render(pipeline_spec, config=None):
    stack = cdk.Stack(cdk.App(), "PipelineTestStack")
    project = codebuild.PipelineProject(stack, "Project")
    construct = PipelineConstruct(
        stack, "Pipeline",
        pipeline_spec=pipeline_spec,
        deployment_target=DeploymentTarget(FLEET),
        build_project=project,
        config=config or StackConfig(),
    )
    return stack, construct


def test_renders_the_declared_pipeline():
    stack, construct = _render(declare(StackConfig()).pipeline)

    assert set(construct.artifacts) == {"SourceOutput", "BuildOutput"}
    Template.from_stack(stack).resource_count_is("AWS::CodePipeline::Pipeline", 1)


def test_configured_repository_is_used():
    config = StackConfig(github_owner="acme", github_repo="shop", github_branch="develop",
                         github_token_secret="acme-token")
    stack, _ = _render(declare(config).pipeline, config=config)

    pipeline = next(iter(Template.from_stack(stack).find_resources("AWS::CodePipeline::Pipeline").values()))
    source = pipeline["Properties"]["Stages"][0]["Actions"][0]["Configuration"]
    assert (source["Owner"], source["Repo"], source["Branch"]) == ("acme", "shop", "develop")
    assert source["OAuthToken"] == "{{resolve:secretsmanager:acme-token:SecretString:::}}"


def test_invalid_pipeline_is_rejected_before_rendering():
    spec = PipelineSpec("broken", (
        StageSpec("Source", (ActionSpec("s", "source", outputs=("src",)),)),
        StageSpec("Deploy", (ActionSpec("d", "deploy", inputs=("src",)),)),
    ))

    with pytest.raises(PipelineDefinitionError):
        _render(spec)


def test_source_action_with_two_outputs_is_rejected():
    spec = PipelineSpec("two-outputs", (
        StageSpec("Source", (ActionSpec("s", "source", outputs=("src", "extra")),)),
        StageSpec("Build", (ActionSpec("b", "build", inputs=("src",), outputs=("out",)),)),
        StageSpec("Deploy", (ActionSpec("d", "deploy", inputs=("out",)),)),
    ))

    with pytest.raises(PipelineDefinitionError, match="source action s"):
        _render(spec)


def test_unknown_action_kind_is_rejected():
    spec = PipelineSpec("unknown-kind", (
        StageSpec("Source", (ActionSpec("s", "source", outputs=("src",)),)),
        StageSpec("Build", (ActionSpec("t", "test", inputs=("src",), outputs=("out",)),)),
        StageSpec("Deploy", (ActionSpec("d", "deploy", inputs=("out",)),)),
    ))

    with pytest.raises(PipelineDefinitionError, match="Unknown action kind"):
        _render(spec)
