"""Assemble the step JSON document given to a pipeline step."""

from __future__ import annotations

import json
import logging

log = logging.getLogger(__name__)

_HTML_ESCAPES = (("&", "\\u0026"), ("<", "\\u003c"), (">", "\\u003e"), ("\u2028", "\\u2028"), ("\u2029", "\\u2029"))


def _sorted(value):
    if isinstance(value, dict):
        return {key: _sorted(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_sorted(item) for item in value]
    return value


class StepJsonAssembler:
    """Builds the step JSON of a mock step using the known integrations."""

    def __init__(self, integrations_parser):
        self.integrations_parser = integrations_parser

    def assemble(self) -> bytes:
        """Return the step JSON document as compact UTF-8 bytes."""
        log.info("Assembling stepJson file")
        named_integrations = [{"name": name} for name in self.integrations_parser.by_name()]
        simplified = _sorted(self.integrations_parser.simplified())
        document = {
            "step": {
                "id": 1,
                "name": "mock_step",
                "runId": 1,
                "pipelineId": 1,
                "pipelineStepId": 1,
                "type": "Bash",
                "execution": {"onExecute": ["echo task"]},
                "configuration": {
                    "affinityGroup": "affinity_group",
                    "inputSteps": [],
                    "inputResources": [],
                    "outputResources": [],
                    "integrations": named_integrations,
                    "environmentVariables": [],
                    "nodePool": "node_pool",
                    "timeoutSeconds": 300,
                    "runtime": {
                        "type": "image",
                        "image": {
                            "imageName": "releases-docker.jfrog.io/jfrog/pipelines-u20node",
                            "imageTag": 16,
                        },
                    },
                    "isOnDemand": False,
                    "instanceSize": None,
                    "nodeId": 1,
                    "nodeName": "node",
                },
            },
            "resources": {},
            "integrations": simplified,
            "affinityGroupSteps": {},
            "inputStepIds": [],
        }
        text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
        for raw, escaped in _HTML_ESCAPES:
            text = text.replace(raw, escaped)
        return text.encode("utf-8")