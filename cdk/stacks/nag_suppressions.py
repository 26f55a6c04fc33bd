"""
CDK-Nag suppressions for the Java web app stack
Use this file to centrally manage suppressions across all stacks
"""

from cdk_nag import NagSuppressions
from aws_cdk import Stack

COMMON_SUPPRESSIONS = [
    {
        "id": "AwsSolutions-IAM4",
        "reason": "SSM and CodeDeploy agent access use AWS managed policies"
    },
    {
        "id": "AwsSolutions-IAM5",
        "reason": "Wildcard permissions are generated by CDK grants on the pipeline artifact bucket"
    },
    {
        "id": "AwsSolutions-CB4",
        "reason": "CodeBuild encryption with AWS managed keys is sufficient for demo"
    },
    {
        "id": "AwsSolutions-S1",
        "reason": "S3 access logging not required for the pipeline artifact bucket"
    }
]

WEB_SERVER_SUPPRESSIONS = [
    {
        "id": "AwsSolutions-EC23",
        "reason": "Web servers accept HTTP and SSH from anywhere by design of this demo"
    },
    {
        "id": "AwsSolutions-EC26",
        "reason": "Instances hold no data beyond the deployed application bundle"
    },
    {
        "id": "AwsSolutions-EC28",
        "reason": "Detailed monitoring not required for demo instances"
    },
    {
        "id": "AwsSolutions-EC29",
        "reason": "Standalone instances are replaced through redeployment, not protected"
    },
    {
        "id": "AwsSolutions-VPC7",
        "reason": "VPC flow logs not required for demo network"
    }
]


def apply_common_suppressions(stack: Stack):
    """Apply suppressions that are acceptable for this demo deployment"""
    NagSuppressions.add_stack_suppressions(stack, COMMON_SUPPRESSIONS)


def apply_web_server_suppressions(stack: Stack):
    """Apply suppressions for the public web servers and their network"""
    NagSuppressions.add_stack_suppressions(stack, WEB_SERVER_SUPPRESSIONS)
