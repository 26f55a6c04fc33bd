#!/usr/bin/env python3
"""
Verify a deployed Java web app stack

Checks the IPAddress output, that the CodeDeploy tag selector matches exactly
the stack's own instances, and the pipeline stage layout.
"""

import argparse
import ipaddress
import logging
import sys
from typing import Dict, List

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('verify_deployment')

EXPECTED_STAGES = ["Source", "Build", "Deploy"]
DEFAULT_SELECTOR = {"application-name": "java-web", "stage": "prod"}


def parse_ip_output(value: str, expected_count: int = 2) -> List[str]:
    """
    Split the IPAddress output into addresses.

    Raises ValueError unless it holds exactly expected_count IPv4 addresses.
    """
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != expected_count:
        raise ValueError(f"Expected {expected_count} addresses, got {len(parts)} in {value!r}")

    for part in parts:
        ipaddress.IPv4Address(part)
    return parts


def get_stack_outputs(cloudformation, stack_name: str) -> Dict[str, str]:
    response = cloudformation.describe_stacks(StackName=stack_name)
    outputs = response["Stacks"][0].get("Outputs", [])
    return {output["OutputKey"]: output["OutputValue"] for output in outputs}


def get_stack_instance_ids(cloudformation, stack_name: str) -> List[str]:
    paginator = cloudformation.get_paginator("list_stack_resources")
    instance_ids = []
    for page in paginator.paginate(StackName=stack_name):
        for resource in page["StackResourceSummaries"]:
            if resource["ResourceType"] == "AWS::EC2::Instance":
                instance_ids.append(resource["PhysicalResourceId"])
    return sorted(instance_ids)


def find_tagged_instance_ids(ec2, selector: Dict[str, str]) -> List[str]:
    """Instances that a CodeDeploy tag selector would target"""
    filters = [{"Name": f"tag:{key}", "Values": [value]} for key, value in selector.items()]
    filters.append({"Name": "instance-state-name", "Values": ["pending", "running", "stopping", "stopped"]})

    instance_ids = []
    paginator = ec2.get_paginator("describe_instances")
    for page in paginator.paginate(Filters=filters):
        for reservation in page["Reservations"]:
            instance_ids.extend(i["InstanceId"] for i in reservation["Instances"])
    return sorted(instance_ids)


def get_pipeline_stages(codepipeline, pipeline_name: str) -> List[str]:
    pipeline = codepipeline.get_pipeline(name=pipeline_name)["pipeline"]
    return [stage["name"] for stage in pipeline["stages"]]


def verify(stack_name: str, pipeline_name: str, selector: Dict[str, str], session=None) -> bool:
    session = session or boto3.session.Session()
    cloudformation = session.client("cloudformation")
    ec2 = session.client("ec2")
    codepipeline = session.client("codepipeline")

    results = {}

    outputs = get_stack_outputs(cloudformation, stack_name)
    try:
        addresses = parse_ip_output(outputs.get("IPAddress", ""))
        logger.info("IPAddress output: %s", ", ".join(addresses))
        results["ip_output"] = True
    except ValueError as e:
        logger.error("IPAddress output is invalid: %s", e)
        results["ip_output"] = False

    stack_instances = get_stack_instance_ids(cloudformation, stack_name)
    tagged_instances = find_tagged_instance_ids(ec2, selector)
    results["tag_selector"] = stack_instances == tagged_instances
    if results["tag_selector"]:
        logger.info("Tag selector %s matches the %d stack instances", selector, len(stack_instances))
    else:
        logger.error("Tag selector %s matches %s, stack instances are %s",
                     selector, tagged_instances, stack_instances)

    stages = get_pipeline_stages(codepipeline, pipeline_name)
    results["pipeline_stages"] = stages == EXPECTED_STAGES
    if results["pipeline_stages"]:
        logger.info("Pipeline %s stages: %s", pipeline_name, " -> ".join(stages))
    else:
        logger.error("Pipeline %s stages are %s, expected %s", pipeline_name, stages, EXPECTED_STAGES)

    return all(results.values())


def main():
    parser = argparse.ArgumentParser(description="Verify a deployed Java web app stack")
    parser.add_argument("--stack-name", default="Ec2CdkStack")
    parser.add_argument("--pipeline-name", default="java-webapp")
    parser.add_argument("--region", default=None)
    parser.add_argument("--application-name", default=DEFAULT_SELECTOR["application-name"])
    parser.add_argument("--stage", default=DEFAULT_SELECTOR["stage"])
    args = parser.parse_args()

    selector = {"application-name": args.application_name, "stage": args.stage}

    try:
        ok = verify(args.stack_name, args.pipeline_name, selector,
                    session=boto3.session.Session(region_name=args.region))
    except NoCredentialsError:
        logger.error("AWS credentials not configured")
        sys.exit(1)
    except ClientError as e:
        logger.error("AWS API call failed: %s", e)
        sys.exit(1)

    if not ok:
        logger.error("Deployment verification FAILED")
        sys.exit(1)
    logger.info("Deployment verification passed")


if __name__ == "__main__":
    main()
