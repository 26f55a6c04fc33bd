"""
Java Web App Stack: VPC, web servers and their delivery pipeline
"""

import logging

import aws_cdk as cdk
from aws_cdk import (
    CfnOutput,
    Fn,
)
from constructs import Construct
from typing import Any, Dict, Optional

from .bootstrap import load_bootstrap_script
from .config import StackConfig
from .constructs.codebuild import CodeBuildConstruct
from .constructs.compute import ComputeConstruct
from .constructs.iam import IAMConstruct
from .constructs.network import NetworkConstruct
from .constructs.pipeline import PipelineConstruct
from .constructs.security import SecurityConstruct
from .nag_suppressions import apply_common_suppressions, apply_web_server_suppressions
from .topology import declare

logger = logging.getLogger(__name__)


class JavaWebAppStack(cdk.Stack):
    """
    Declares the web server fleet and the pipeline that deploys to it.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 config: Optional[StackConfig] = None, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.config = config or StackConfig()

        # Validate declarations before any construct is created
        self.declaration = declare(self.config)
        self.planned_subnets = self.declaration.validate()

        # Read the bootstrap script up front; a bad path fails synthesis here
        self.bootstrap_script = load_bootstrap_script(self.config.bootstrap_script)

        self._create_shared_infrastructure()

        self._create_delivery_pipeline()

        self._create_outputs()

        self._apply_stack_suppressions()

    def _create_shared_infrastructure(self) -> None:
        """Create network, access and compute constructs in proper order"""

        # 1. Instance role
        self.iam_construct = IAMConstruct(
            self, "IAM",
            role_spec=self.declaration.role,
            application_name=self.config.application_name
        )

        # 2. VPC and public subnets
        self.network_construct = NetworkConstruct(
            self, "Network",
            vpc_cidr=self.declaration.network.cidr,
            planned_subnets=self.planned_subnets
        )

        # 3. Security group
        self.security_construct = SecurityConstruct(
            self, "Security",
            vpc=self.network_construct.vpc,
            access_spec=self.declaration.access
        )

        # 4. Web servers
        self.compute_construct = ComputeConstruct(
            self, "Compute",
            fleet_spec=self.declaration.fleet,
            network=self.network_construct,
            security_group=self.security_construct.web_sg,
            role=self.iam_construct.web_server_role,
            bootstrap_script=self.bootstrap_script
        )

        # Store references for easy access
        self.vpc = self.network_construct.vpc
        self.web_sg = self.security_construct.web_sg
        self.web_server_role = self.iam_construct.web_server_role
        self.instances = self.compute_construct.get_all_instances()

    def _create_delivery_pipeline(self) -> None:
        """Create the build project and the Source -> Build -> Deploy pipeline"""
        self.codebuild_construct = CodeBuildConstruct(
            self, "CodeBuild",
            application_name=self.config.application_name
        )

        self.pipeline_construct = PipelineConstruct(
            self, "Pipeline",
            pipeline_spec=self.declaration.pipeline,
            deployment_target=self.declaration.deployment_target,
            build_project=self.codebuild_construct.build_project,
            config=self.config
        )

        self.pipeline = self.pipeline_construct.pipeline
        self.deployment_group = self.pipeline_construct.deployment_group

    def _create_outputs(self) -> None:
        CfnOutput(
            self, "IPAddress",
            value=Fn.join(",", self.compute_construct.public_ips),
            description="Public IP addresses of the web servers"
        )

    def _apply_stack_suppressions(self) -> None:
        """Apply CDK-Nag suppressions for the demo posture of this stack"""
        apply_common_suppressions(self)
        apply_web_server_suppressions(self)

    def get_resource_summary(self) -> Dict[str, Any]:
        """Get a summary of all declared resources"""
        return {
            'network': {
                'vpc_cidr': self.declaration.network.cidr,
                'subnets': {p.name: p.cidr for p in self.planned_subnets}
            },
            'compute': {
                'instances_count': len(self.instances),
                'instance_ids': list(self.instances.keys()),
                'tags': self.declaration.fleet.tag_map
            },
            'pipeline': {
                'name': self.declaration.pipeline.name,
                'stages': [stage.name for stage in self.declaration.pipeline.stages],
                'tag_selector': self.declaration.deployment_target.tag_selector
            }
        }
