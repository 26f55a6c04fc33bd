"""
Errors raised while declaring the Java web app infrastructure.

All of them are raised during synthesis, before any construct is created,
so `cdk synth` fails without emitting a partial template.
"""


class InfrastructureDefinitionError(Exception):
    """Base class for invalid infrastructure declarations"""


class ConfigurationError(InfrastructureDefinitionError):
    """Invalid or unreadable stack configuration"""


class TopologyError(InfrastructureDefinitionError):
    """Network declaration cannot be carved into non-overlapping subnets"""


class BootstrapScriptError(InfrastructureDefinitionError):
    """Instance bootstrap script is missing, unreadable or empty"""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Bootstrap script {path}: {reason}")
        self.path = path
        self.reason = reason


class PipelineDefinitionError(InfrastructureDefinitionError):
    """Pipeline stages or artifacts are wired inconsistently"""
