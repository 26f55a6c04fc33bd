"""
Security group for the web servers
"""

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..errors import TopologyError
from ..topology import AccessSpec, IngressRule


class SecurityConstruct(Construct):
    """Creates the web server security group from its access declaration"""

    def __init__(self, scope: Construct, construct_id: str,
                 vpc: ec2.IVpc, access_spec: AccessSpec, **kwargs) -> None:
        super().__init__(scope, construct_id)

        self.web_sg = ec2.SecurityGroup(
            self, "web_sg",
            vpc=vpc,
            description=access_spec.description,
            allow_all_outbound=access_spec.allow_all_outbound
        )

        for rule in access_spec.ingress:
            self.web_sg.add_ingress_rule(
                peer=self._peer_for(rule),
                connection=self._port_for(rule),
                description=rule.description or None
            )

    @staticmethod
    def _peer_for(rule: IngressRule) -> ec2.IPeer:
        if rule.source == "0.0.0.0/0":
            return ec2.Peer.any_ipv4()
        return ec2.Peer.ipv4(rule.source)

    @staticmethod
    def _port_for(rule: IngressRule) -> ec2.Port:
        if rule.protocol == "tcp":
            return ec2.Port.tcp(rule.port)
        if rule.protocol == "udp":
            return ec2.Port.udp(rule.port)
        raise TopologyError(f"Unsupported ingress protocol {rule.protocol!r}")
