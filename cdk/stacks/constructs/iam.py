"""
IAM Construct for the web server instance role
"""

from aws_cdk import (
    aws_iam as iam,
    Tags,
)
from constructs import Construct

from ..topology import RoleSpec


class IAMConstruct(Construct):
    """
    Creates the role the web servers run as.

    The role lets Systems Manager manage the instances and lets the
    CodeDeploy agent fetch revisions from the pipeline artifact store.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 role_spec: RoleSpec, application_name: str, **kwargs) -> None:
        super().__init__(scope, construct_id)

        self.role_spec = role_spec
        self.application_name = application_name

        self._create_web_server_role()

        self._apply_tags()

    def _create_web_server_role(self) -> None:
        """Create the EC2 role with its managed policies"""
        self.web_server_role = iam.Role(
            self, "ec2Role",
            assumed_by=iam.ServicePrincipal(self.role_spec.principal),
            description="Role for the web servers and their CodeDeploy agent"
        )

        for policy_name in self.role_spec.managed_policies:
            self.web_server_role.add_managed_policy(
                iam.ManagedPolicy.from_aws_managed_policy_name(policy_name))

    def _apply_tags(self) -> None:
        Tags.of(self.web_server_role).add("Project", self.application_name)

    @property
    def web_server_role_arn(self) -> str:
        """Returns the web server role ARN"""
        return self.web_server_role.role_arn
