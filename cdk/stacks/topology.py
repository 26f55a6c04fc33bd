"""
Declarations for the Java web app infrastructure

Plain dataclasses describing the network, access rules, instance role,
compute fleet and delivery pipeline. They are validated here, before any
CDK construct exists, and then rendered by the constructs package.
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .config import StackConfig
from .errors import PipelineDefinitionError, TopologyError

logger = logging.getLogger(__name__)

# AWS accepts subnet prefixes from /16 down to /28
MIN_SUBNET_PREFIX = 16
MAX_SUBNET_PREFIX = 28

SOURCE_STAGE = "Source"
BUILD_STAGE = "Build"
DEPLOY_STAGE = "Deploy"
STAGE_ORDER = (SOURCE_STAGE, BUILD_STAGE, DEPLOY_STAGE)

# CodeDeploy accepts at most three tag groups in an instance tag set
MAX_TAG_GROUPS = 3


@dataclass(frozen=True)
class SubnetSpec:
    """One public or private subnet of the VPC"""
    name: str
    cidr_mask: int
    public: bool = True


@dataclass(frozen=True)
class PlannedSubnet:
    """A subnet with its carved address range and AZ slot"""
    spec: SubnetSpec
    cidr: str
    az_index: int

    @property
    def name(self) -> str:
        return self.spec.name


@dataclass(frozen=True)
class NetworkSpec:
    cidr: str
    subnets: Tuple[SubnetSpec, ...]

    def plan(self) -> List[PlannedSubnet]:
        """
        Carve one address range per subnet, in declaration order.

        Each range is aligned on its own mask and placed after the previous
        one, so the result never overlaps and stays inside the VPC block.
        Subnet i lands in the i-th availability zone of the region.
        """
        try:
            block = ipaddress.ip_network(self.cidr)
        except ValueError as e:
            raise TopologyError(f"Invalid VPC CIDR {self.cidr!r}: {e}") from e

        if not self.subnets:
            raise TopologyError("Network declares no subnets")

        names = [s.name for s in self.subnets]
        if len(set(names)) != len(names):
            raise TopologyError(f"Duplicate subnet names in {names}")

        cursor = int(block.network_address)
        planned = []
        for index, subnet in enumerate(self.subnets):
            if not (max(block.prefixlen, MIN_SUBNET_PREFIX) <= subnet.cidr_mask <= MAX_SUBNET_PREFIX):
                raise TopologyError(
                    f"Subnet {subnet.name} mask /{subnet.cidr_mask} is outside "
                    f"/{max(block.prefixlen, MIN_SUBNET_PREFIX)}-/{MAX_SUBNET_PREFIX} for {block}")

            size = 2 ** (block.max_prefixlen - subnet.cidr_mask)
            start = -(-cursor // size) * size
            candidate = ipaddress.ip_network((start, subnet.cidr_mask))
            if not candidate.subnet_of(block):
                raise TopologyError(
                    f"Subnet {subnet.name} (/{subnet.cidr_mask}) does not fit in {block}")

            planned.append(PlannedSubnet(spec=subnet, cidr=str(candidate), az_index=index))
            cursor = int(candidate.broadcast_address) + 1

        check_non_overlapping(self.cidr, [p.cidr for p in planned])
        return planned


def check_non_overlapping(vpc_cidr: str, subnet_cidrs: List[str]) -> None:
    """Raise TopologyError unless all ranges are disjoint and inside vpc_cidr"""
    block = ipaddress.ip_network(vpc_cidr)
    networks = [ipaddress.ip_network(c) for c in subnet_cidrs]

    for net in networks:
        if not net.subnet_of(block):
            raise TopologyError(f"Subnet {net} is outside VPC block {block}")

    for i, left in enumerate(networks):
        for right in networks[i + 1:]:
            if left.overlaps(right):
                raise TopologyError(f"Subnets {left} and {right} overlap")


@dataclass(frozen=True)
class IngressRule:
    protocol: str
    port: int
    source: str
    description: str = ""


@dataclass(frozen=True)
class AccessSpec:
    description: str
    ingress: Tuple[IngressRule, ...]
    allow_all_outbound: bool = True


@dataclass(frozen=True)
class RoleSpec:
    principal: str
    managed_policies: Tuple[str, ...]


@dataclass(frozen=True)
class FleetSpec:
    """
    Identically configured instances sharing one tag set.

    Tags may be given as a mapping; they are stored as an ordered tuple of
    (key, value) pairs.
    """
    name: str
    count: int
    instance_class: str
    instance_size: str
    tags: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple(dict(self.tags).items()))

    @property
    def tag_map(self) -> Dict[str, str]:
        return dict(self.tags)

    def instance_ids(self) -> List[str]:
        return [f"{self.name}{i}" for i in range(1, self.count + 1)]


@dataclass(frozen=True)
class DeploymentTarget:
    """
    Deployment group target bound to a fleet declaration.

    The tag selector is derived from the fleet's own tags, so the deployment
    group always selects the instances this stack tags.
    """
    fleet: FleetSpec

    @property
    def tag_selector(self) -> Dict[str, List[str]]:
        """CodeDeploy InstanceTagSet shape: tag key -> accepted values"""
        return {key: [value] for key, value in self.fleet.tags}

    @property
    def tag_groups(self) -> List[Dict[str, List[str]]]:
        """
        One single-key group per tag.

        CodeDeploy ORs the tags inside a group and ANDs the groups of a set,
        so separate groups make the selector a conjunction.
        """
        return [{key: values} for key, values in self.tag_selector.items()]

    def matches(self, tags: Dict[str, str]) -> bool:
        """True when every selector tag is present with its required value"""
        return all(tags.get(key) in values for key, values in self.tag_selector.items())


@dataclass(frozen=True)
class ActionSpec:
    name: str
    kind: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StageSpec:
    name: str
    actions: Tuple[ActionSpec, ...]


@dataclass(frozen=True)
class PipelineSpec:
    name: str
    stages: Tuple[StageSpec, ...]

    def validate(self) -> None:
        """Check stage order and that every input comes from an earlier stage"""
        names = tuple(stage.name for stage in self.stages)
        if names != STAGE_ORDER:
            raise PipelineDefinitionError(
                f"Pipeline {self.name} stages must be {list(STAGE_ORDER)}, got {list(names)}")

        produced = set()
        for stage in self.stages:
            if not stage.actions:
                raise PipelineDefinitionError(f"Stage {stage.name} has no actions")

            stage_outputs = set()
            for action in stage.actions:
                for artifact in action.inputs:
                    if artifact not in produced:
                        raise PipelineDefinitionError(
                            f"Action {action.name} in stage {stage.name} consumes "
                            f"{artifact!r}, which no earlier stage produces")
                for artifact in action.outputs:
                    if artifact in produced or artifact in stage_outputs:
                        raise PipelineDefinitionError(
                            f"Artifact {artifact!r} is produced more than once")
                    stage_outputs.add(artifact)
            produced |= stage_outputs

    def stage(self, name: str) -> StageSpec:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)


@dataclass(frozen=True)
class InfrastructureDeclaration:
    network: NetworkSpec
    access: AccessSpec
    role: RoleSpec
    fleet: FleetSpec
    pipeline: PipelineSpec
    deployment_target: DeploymentTarget

    def validate(self) -> List[PlannedSubnet]:
        planned = self.network.plan()
        self.pipeline.validate()
        if self.fleet.count < 1:
            raise TopologyError(f"Fleet {self.fleet.name} must have at least one instance")
        tag_groups = self.deployment_target.tag_groups
        if not tag_groups:
            raise PipelineDefinitionError(f"Fleet {self.fleet.name} has no tags to select deployment targets")
        if len(tag_groups) > MAX_TAG_GROUPS:
            raise PipelineDefinitionError(
                f"Fleet {self.fleet.name} has {len(tag_groups)} tags, a deployment group "
                f"selects on at most {MAX_TAG_GROUPS}")

        for subnet in planned:
            logger.info("Subnet %s -> %s (AZ slot %d)", subnet.name, subnet.cidr, subnet.az_index)
        logger.info("Pipeline %s stages: %s", self.pipeline.name,
                    " -> ".join(stage.name for stage in self.pipeline.stages))
        return planned


def declare(config: StackConfig) -> InfrastructureDeclaration:
    """Build the full declaration set for the given configuration"""
    network = NetworkSpec(
        cidr=config.vpc_cidr,
        subnets=(
            SubnetSpec(name="pub01", cidr_mask=24),
            SubnetSpec(name="pub02", cidr_mask=24),
            SubnetSpec(name="pub03", cidr_mask=28),
        ),
    )

    access = AccessSpec(
        description="Allows all inbound HTTP traffic to the web server",
        ingress=(
            IngressRule(protocol="tcp", port=80, source="0.0.0.0/0", description="HTTP"),
            IngressRule(protocol="tcp", port=22, source="0.0.0.0/0", description="SSH"),
        ),
    )

    role = RoleSpec(
        principal="ec2.amazonaws.com",
        managed_policies=(
            "AmazonSSMManagedInstanceCore",
            "service-role/AmazonEC2RoleforAWSCodeDeploy",
        ),
    )

    fleet = FleetSpec(
        name="web_server",
        count=2,
        instance_class="t3",
        instance_size="nano",
        tags={
            "application-name": config.application_name,
            "stage": config.stage,
        },
    )

    pipeline = PipelineSpec(
        name=config.pipeline_name,
        stages=(
            StageSpec(SOURCE_STAGE, (
                ActionSpec("GithubSource", "source", outputs=("SourceOutput",)),
            )),
            StageSpec(BUILD_STAGE, (
                ActionSpec("BuildApp", "build", inputs=("SourceOutput",), outputs=("BuildOutput",)),
            )),
            StageSpec(DEPLOY_STAGE, (
                ActionSpec("springBootAppDeployment", "deploy", inputs=("BuildOutput",)),
            )),
        ),
    )

    return InfrastructureDeclaration(
        network=network,
        access=access,
        role=role,
        fleet=fleet,
        pipeline=pipeline,
        deployment_target=DeploymentTarget(fleet=fleet),
    )
