"""
Pytest configuration and shared fixtures.

Synthesizing a stack goes through jsii and takes a few seconds, so the
default stack and its template are built once per session.
"""

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from stacks.config import StackConfig
from stacks.web_app_stack import JavaWebAppStack


@pytest.fixture(scope="session")
def config() -> StackConfig:
    return StackConfig()


@pytest.fixture(scope="session")
def stack(config) -> JavaWebAppStack:
    app = cdk.App()
    return JavaWebAppStack(app, "TestJavaWebAppStack", config=config)


@pytest.fixture(scope="session")
def template(stack) -> Template:
    return Template.from_stack(stack)


@pytest.fixture
def bootstrap_file(tmp_path):
    path = tmp_path / "bootstrap.sh"
    path.write_text("#!/bin/bash\necho bootstrapped\n", encoding="utf-8")
    return path
