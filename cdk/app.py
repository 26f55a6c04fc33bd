#!/usr/bin/env python3
"""
Java Web App on EC2 CDK App
Main entry point for CDK deployment
"""

import logging
import os
import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks
from stacks.config import StackConfig
from stacks.web_app_stack import JavaWebAppStack

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = cdk.App()

# Context first, then config file, then CDK_DEFAULT_* environment variables
config = StackConfig.from_app(app)

web_app_stack = JavaWebAppStack(
    app,
    config.stack_name,
    config=config,
    description="Java web app on EC2 with a GitHub -> CodeBuild -> CodeDeploy pipeline",
    env=config.environment
)

# Add cdk-nag checks (unless explicitly skipped)
if not os.environ.get("CDK_NAG_SKIP"):
    cdk.Aspects.of(app).add(AwsSolutionsChecks(verbose=True))

app.synth()
