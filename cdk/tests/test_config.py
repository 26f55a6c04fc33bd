import aws_cdk as cdk
import pytest

from stacks.config import StackConfig, load_config_file
from stacks.errors import ConfigurationError


def test_defaults_match_the_java_web_deployment():
    config = StackConfig()

    assert config.vpc_cidr == "10.0.0.0/16"
    assert (config.github_owner, config.github_repo, config.github_branch) == (
        "manucha23", "aws-springboot-app", "main")
    assert config.github_token_secret == "github-oauth-token"
    assert config.pipeline_name == "java-webapp"
    assert config.codedeploy_application == "aws-springboot-webApp"
    assert config.deployment_group_name == "SpringBootAppDeploymentGroup"
    assert (config.application_name, config.stage) == ("java-web", "prod")


def test_environment_supplies_account_and_region():
    config = StackConfig.resolve({}, environ={
        "CDK_DEFAULT_ACCOUNT": "123456789012",
        "CDK_DEFAULT_REGION": "eu-west-1",
    })

    assert config.account == "123456789012"
    assert config.region == "eu-west-1"


def test_context_overrides_environment():
    config = StackConfig.resolve(
        {"region": "ap-southeast-2", "githubBranch": "release"},
        environ={"CDK_DEFAULT_REGION": "eu-west-1"},
    )

    assert config.region == "ap-southeast-2"
    assert config.github_branch == "release"


def test_config_file_sits_between_context_and_environment(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text(
        "region: us-west-2\n"
        "githubRepo: other-app\n"
        "stage: staging\n",
        encoding="utf-8",
    )

    config = StackConfig.resolve(
        {"stage": "prod"},
        config_file=str(config_file),
        environ={"CDK_DEFAULT_REGION": "eu-west-1"},
    )

    assert config.region == "us-west-2"
    assert config.github_repo == "other-app"
    assert config.stage == "prod"


def test_toolkit_context_keys_are_ignored():
    config = StackConfig.resolve({
        "@aws-cdk/aws-iam:minimizePolicies": True,
        "aws:cdk:enable-path-metadata": True,
        "githubBranch": "release",
    })

    assert config.github_branch == "release"
    assert config == StackConfig(github_branch="release")


def test_config_file_with_unknown_keys(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("instanceType: t3.large\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="instanceType"):
        load_config_file(str(config_file))


def test_config_file_must_be_a_mapping(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("- region\n- stage\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_config_file(str(config_file))


def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("region: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config_file(str(config_file))


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_config_file(str(tmp_path / "missing.yaml"))


def test_empty_config_file(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("", encoding="utf-8")

    assert load_config_file(str(config_file)) == {}


def test_from_app_reads_context(monkeypatch):
    monkeypatch.delenv("CDK_DEFAULT_REGION", raising=False)
    app = cdk.App(context={"githubOwner": "someone", "vpcCidr": "10.20.0.0/16"})

    config = StackConfig.from_app(app)

    assert config.github_owner == "someone"
    assert config.vpc_cidr == "10.20.0.0/16"


def test_from_app_with_feature_flags_and_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("CDK_DEFAULT_ACCOUNT", raising=False)
    monkeypatch.delenv("CDK_DEFAULT_REGION", raising=False)
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("githubRepo: other-app\n", encoding="utf-8")
    app = cdk.App(context={
        "@aws-cdk/aws-iam:minimizePolicies": True,
        "configFile": str(config_file),
        "stage": "staging",
    })

    config = StackConfig.from_app(app)

    assert (config.github_repo, config.stage) == ("other-app", "staging")


def test_from_app_rejects_unknown_keys_in_config_file(tmp_path):
    config_file = tmp_path / "stack.yaml"
    config_file.write_text("vpcCIDR: 10.0.0.0/16\n", encoding="utf-8")
    app = cdk.App(context={"configFile": str(config_file)})

    with pytest.raises(ConfigurationError, match="vpcCIDR"):
        StackConfig.from_app(app)
