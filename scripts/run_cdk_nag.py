#!/usr/bin/env python3
"""
CDK-Nag Security and Compliance Scanner
Runs `cdk synth` with the AwsSolutions checks and summarises the findings
"""

import logging
import os
import subprocess
import sys
from pathlib import Path

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('run_cdk_nag')

CDK_DIR = Path(__file__).parent.parent / "cdk"


def run_cdk_nag() -> bool:
    """Run cdk synth with nag checks enabled"""
    logger.info("Running CDK-Nag checks in %s", CDK_DIR)

    env = dict(os.environ)
    env.pop("CDK_NAG_SKIP", None)

    try:
        result = subprocess.run(
            ["cdk", "synth", "--all"],
            cwd=CDK_DIR,
            capture_output=True,
            text=True,
            env=env
        )
    except FileNotFoundError:
        logger.error("cdk CLI not found; install it with `npm install -g aws-cdk`")
        return False

    if result.returncode == 0:
        logger.info("CDK synthesis completed without nag errors")
    else:
        logger.error("CDK synthesis failed or found issues:\n%s", result.stderr)

    analyze_nag_results(CDK_DIR / "cdk.out")
    return result.returncode == 0


def analyze_nag_results(cdk_out_dir: Path) -> None:
    """Summarise the NagReport files written into cdk.out"""
    if not cdk_out_dir.exists():
        logger.warning("No cdk.out directory found")
        return

    nag_files = list(cdk_out_dir.glob("**/AwsSolutions-*-NagReport.csv"))
    if not nag_files:
        logger.info("No nag report files found, but checks were applied during synth")
        return

    for nag_file in nag_files:
        with open(nag_file, 'r', encoding='utf-8') as f:
            rows = f.read().splitlines()[1:]
        non_compliant = [row for row in rows if '"Non-Compliant"' in row]
        suppressed = [row for row in rows if '"Suppressed"' in row]
        logger.info("%s: %d non-compliant, %d suppressed",
                    nag_file.name, len(non_compliant), len(suppressed))
        for row in non_compliant[:5]:
            logger.info("  %s", row)


def main():
    if not run_cdk_nag():
        logger.error("CDK-Nag scan encountered issues")
        sys.exit(1)
    logger.info("CDK-Nag scan completed successfully")


if __name__ == "__main__":
    main()
