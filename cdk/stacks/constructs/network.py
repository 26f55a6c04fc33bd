"""
Network Construct for the VPC and its public subnets
"""

from aws_cdk import (
    aws_ec2 as ec2,
    Fn,
    Tags,
)
from constructs import Construct
from typing import List

from ..topology import PlannedSubnet


class NetworkConstruct(Construct):
    """
    Creates the VPC and one public subnet per planned range.

    Subnets are declared from the validated plan rather than left to the VPC
    construct, so each planned range gets exactly one subnet in its own
    availability zone.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 vpc_cidr: str, planned_subnets: List[PlannedSubnet], **kwargs) -> None:
        super().__init__(scope, construct_id)

        self.planned_subnets = planned_subnets

        self._create_vpc(vpc_cidr)

        self._create_internet_gateway()

        self._create_public_subnets()

    def _create_vpc(self, vpc_cidr: str) -> None:
        self.vpc = ec2.Vpc(
            self, "main-vps",
            ip_addresses=ec2.IpAddresses.cidr(vpc_cidr),
            subnet_configuration=[],
            nat_gateways=0
        )

    def _create_internet_gateway(self) -> None:
        self.internet_gateway = ec2.CfnInternetGateway(self, "InternetGateway")
        self.gateway_attachment = ec2.CfnVPCGatewayAttachment(
            self, "VpcGatewayAttachment",
            vpc_id=self.vpc.vpc_id,
            internet_gateway_id=self.internet_gateway.ref
        )

    def _create_public_subnets(self) -> None:
        """Create the public subnets, each routed to the internet gateway"""
        self.subnets: List[ec2.PublicSubnet] = []

        for planned in self.planned_subnets:
            subnet = ec2.PublicSubnet(
                self, f"{planned.name}Subnet",
                vpc_id=self.vpc.vpc_id,
                cidr_block=planned.cidr,
                availability_zone=Fn.select(planned.az_index, Fn.get_azs()),
                map_public_ip_on_launch=True
            )
            subnet.add_default_internet_route(
                self.internet_gateway.ref, self.gateway_attachment)

            Tags.of(subnet).add("Name", planned.name)
            Tags.of(subnet).add("aws-cdk:subnet-name", planned.name)
            Tags.of(subnet).add("aws-cdk:subnet-type", "Public")

            self.subnets.append(subnet)

    def subnet_for(self, index: int) -> ec2.PublicSubnet:
        """Round-robin subnet placement for the index-th instance"""
        return self.subnets[index % len(self.subnets)]

    @property
    def subnet_cidrs(self) -> List[str]:
        return [planned.cidr for planned in self.planned_subnets]
