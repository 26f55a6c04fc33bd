"""
Stack configuration

Values are resolved in the same order everywhere: CDK context, then an
optional YAML file named by the `configFile` context key, then environment
variables, then the defaults below.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import aws_cdk as cdk
import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Context key -> dataclass field
CONTEXT_KEYS = {
    "account": "account",
    "region": "region",
    "stackName": "stack_name",
    "vpcCidr": "vpc_cidr",
    "githubOwner": "github_owner",
    "githubRepo": "github_repo",
    "githubBranch": "github_branch",
    "githubTokenSecret": "github_token_secret",
    "pipelineName": "pipeline_name",
    "codeDeployApplication": "codedeploy_application",
    "deploymentGroupName": "deployment_group_name",
    "applicationName": "application_name",
    "stage": "stage",
    "bootstrapScript": "bootstrap_script",
}

ENV_KEYS = {
    "account": "CDK_DEFAULT_ACCOUNT",
    "region": "CDK_DEFAULT_REGION",
}


@dataclass(frozen=True)
class StackConfig:
    account: Optional[str] = None
    region: str = "us-east-1"
    stack_name: str = "Ec2CdkStack"
    vpc_cidr: str = "10.0.0.0/16"
    github_owner: str = "manucha23"
    github_repo: str = "aws-springboot-app"
    github_branch: str = "main"
    github_token_secret: str = "github-oauth-token"
    pipeline_name: str = "java-webapp"
    codedeploy_application: str = "aws-springboot-webApp"
    deployment_group_name: str = "SpringBootAppDeploymentGroup"
    application_name: str = "java-web"
    stage: str = "prod"
    bootstrap_script: str = "assets/configure_amz_linux_java_app.sh"

    @classmethod
    def from_app(cls, app: cdk.App) -> "StackConfig":
        """Resolve configuration for a CDK app"""
        context = {key: app.node.try_get_context(key) for key in CONTEXT_KEYS}

        config_file = app.node.try_get_context("configFile")
        return cls.resolve(context, config_file=config_file, environ=os.environ)

    @classmethod
    def resolve(cls, context: Dict[str, Any], config_file: Optional[str] = None,
                environ: Optional[Dict[str, str]] = None) -> "StackConfig":
        environ = environ if environ is not None else {}
        values: Dict[str, Any] = {}

        for field_name, env_key in ENV_KEYS.items():
            if environ.get(env_key):
                values[field_name] = environ[env_key]

        if config_file:
            values.update(load_config_file(config_file))

        # Other context keys belong to the CDK toolkit
        for key, field_name in CONTEXT_KEYS.items():
            if context.get(key) is not None:
                values[field_name] = str(context[key])

        config = cls(**values)
        logger.info("Resolved stack configuration: %s", config.describe())
        return config

    def describe(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def environment(self) -> cdk.Environment:
        return cdk.Environment(account=self.account, region=self.region)


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML mapping of context keys to values"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - set(CONTEXT_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown keys in config file {path}: {unknown}")

    logger.info("Loaded %d setting(s) from %s", len(data), path)
    return {CONTEXT_KEYS[key]: str(value) for key, value in data.items()}
