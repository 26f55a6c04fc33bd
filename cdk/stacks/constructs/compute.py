"""
Compute Construct for the web server fleet
"""

import logging

from aws_cdk import (
    aws_ec2 as ec2,
    aws_iam as iam,
    Tags,
)
from constructs import Construct
from typing import Dict, List

from ..topology import FleetSpec
from .network import NetworkConstruct

logger = logging.getLogger(__name__)


class ComputeConstruct(Construct):
    """
    Manages the EC2 instances that serve the Java web app.

    Every instance shares the instance type, image, security group, role,
    bootstrap script and tag set. The tags are what the CodeDeploy
    deployment group selects on.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 fleet_spec: FleetSpec,
                 network: NetworkConstruct,
                 security_group: ec2.ISecurityGroup,
                 role: iam.IRole,
                 bootstrap_script: str,
                 **kwargs) -> None:
        super().__init__(scope, construct_id)

        self.fleet_spec = fleet_spec
        self.network = network
        self.security_group = security_group
        self.role = role
        self.bootstrap_script = bootstrap_script

        self.machine_image = ec2.MachineImage.latest_amazon_linux2(
            cpu_type=ec2.AmazonLinuxCpuType.X86_64
        )
        self.instance_type_name = f"{fleet_spec.instance_class}.{fleet_spec.instance_size}"
        self.instance_type = ec2.InstanceType(self.instance_type_name)

        self._create_instances()

        self._apply_tags()

    def _create_instances(self) -> None:
        self.instances: Dict[str, ec2.Instance] = {}

        for index, instance_id in enumerate(self.fleet_spec.instance_ids()):
            instance = ec2.Instance(
                self, instance_id,
                vpc=self.network.vpc,
                vpc_subnets=ec2.SubnetSelection(subnets=[self.network.subnet_for(index)]),
                instance_type=self.instance_type,
                machine_image=self.machine_image,
                security_group=self.security_group,
                role=self.role
            )
            instance.add_user_data(self.bootstrap_script)
            self.instances[instance_id] = instance

        logger.info("Declared %d %s instance(s) for fleet %s",
                    len(self.instances), self.instance_type_name, self.fleet_spec.name)

    def _apply_tags(self) -> None:
        """Apply the fleet tag set that deployment targeting relies on"""
        for instance in self.instances.values():
            for key, value in self.fleet_spec.tags:
                Tags.of(instance).add(key, value)

    @property
    def public_ips(self) -> List[str]:
        return [instance.instance_public_ip for instance in self.instances.values()]

    def get_all_instances(self) -> Dict[str, ec2.Instance]:
        return dict(self.instances)
