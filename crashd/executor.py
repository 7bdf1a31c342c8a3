"""Execution of a parsed script across the machines it names."""

from __future__ import annotations

import logging
import os

import requests
import yaml

from .archiver import tar
from .args import CMD_KUBECONFIG
from .commands import Script
from .directives import Machine
from .k8s import dump_cluster_info, get_client
from .local import exe_locally
from .preambles import exe_envs, exe_from, exe_output, exe_workdir
from .proc import sanitize_str
from .remote import exe_remotely

logger = logging.getLogger(__name__)

_CLUSTER_ERRORS = (OSError, ValueError, yaml.YAMLError, requests.RequestException)


class Executor:
    """Runs a script and bundles what it collects into the output archive."""

    def __init__(self, script: Script) -> None:
        self.script = script

    def execute(self) -> None:
        """Run the script's actions on each machine, then archive the workdir."""
        logger.info("Executing script file")

        exe_envs(self.script)
        from_cmd = exe_from(self.script)
        workdir = exe_workdir(self.script)
        output = exe_output(self.script)

        exe_cluster_info(self.script, os.path.join(workdir.path, "cluster-dump.json"))

        for machine in from_cmd.machines:
            machine_workdir = make_machine_workdir(workdir.path, machine)
            if machine.address == "local":
                logger.debug("Executing commands on local machine")
                exe_locally(self.script, machine_workdir)
            else:
                logger.debug("Executing remote commands at %s", machine.address)
                exe_remotely(self.script, machine, machine_workdir)

        tar(output.path, workdir.path)
        logger.info("Created output at path %s", output.path)
        logger.info("Done")


def make_machine_workdir(workdir: str, machine: Machine) -> str:
    """Create and return the directory collecting output for ``machine``."""
    machine_workdir = os.path.join(workdir, sanitize_str(machine.address))
    os.makedirs(machine_workdir, mode=0o744, exist_ok=True)
    return machine_workdir


def exe_cluster_info(script: Script, path: str) -> None:
    """Dump cluster information to ``path`` using the script's KUBECONFIG.

    Any failure is logged and skipped.
    """
    cfgs = script.preambles.get(CMD_KUBECONFIG)
    if not cfgs:
        logger.warning("Skipping cluster-info, KUBECONFIG not provided")
        return
    cfg_path = cfgs[0].path
    try:
        os.stat(cfg_path)
    except OSError as err:
        logger.warning("Skipping cluster-info, unable to load KUBECONFIG %s: %s", cfg_path, err)
        return

    logger.debug("Using KUBECONFIG %s", cfg_path)
    try:
        client = get_client(cfg_path)
    except _CLUSTER_ERRORS as err:
        logger.error(
            "Skipping cluster-info, failed to create Kubernetes API server client: %s", err
        )
        return

    try:
        dump_cluster_info(client, path)
    except _CLUSTER_ERRORS as err:
        logger.error("Failed to retrieve cluster information: %s", err)