import json

from rtplugins.integrations import FormJSONValue, IntegrationsParser, ProjectIntegration
from rtplugins.step_json import StepJsonAssembler


def test_assemble_without_integrations():
    expected = (
        '{"step":{"id":1,"name":"mock_step","runId":1,"pipelineId":1,"pipelineStepId":1,"type":"Bash",'
        '"execution":{"onExecute":["echo task"]},"configuration":{"affinityGroup":"affinity_group",'
        '"inputSteps":[],"inputResources":[],"outputResources":[],"integrations":[],'
        '"environmentVariables":[],"nodePool":"node_pool","timeoutSeconds":300,'
        '"runtime":{"type":"image","image":{"imageName":"releases-docker.jfrog.io/jfrog/pipelines-u20node",'
        '"imageTag":16}},"isOnDemand":false,"instanceSize":null,"nodeId":1,"nodeName":"node"}},'
        '"resources":{},"integrations":{},"affinityGroupSteps":{},"inputStepIds":[]}'
    )
    assert StepJsonAssembler(IntegrationsParser()).assemble().decode("utf-8") == expected


def test_assemble_with_integration():
    integration = ProjectIntegration(
        id=1,
        master_integration_id=1,
        name="integration",
        master_integration_type="generic",
        project_id=1,
        master_integration_name="generic",
        provider_id=1,
        created_by_user_name="user",
        updated_by_user_name="user",
        form_json_values=[FormJSONValue("key", "value")],
        created_by=1,
        updated_by=1,
    )
    expected = (
        '{"step":{"id":1,"name":"mock_step","runId":1,"pipelineId":1,"pipelineStepId":1,"type":"Bash",'
        '"execution":{"onExecute":["echo task"]},"configuration":{"affinityGroup":"affinity_group",'
        '"inputSteps":[],"inputResources":[],"outputResources":[],"integrations":[{"name":"integration"}],'
        '"environmentVariables":[],"nodePool":"node_pool","timeoutSeconds":300,'
        '"runtime":{"type":"image","image":{"imageName":"releases-docker.jfrog.io/jfrog/pipelines-u20node",'
        '"imageTag":16}},"isOnDemand":false,"instanceSize":null,"nodeId":1,"nodeName":"node"}},'
        '"resources":{},"integrations":{"integration":{"displayName":"generic","id":1,"key":"value",'
        '"masterName":"generic","name":"integration"}},"affinityGroupSteps":{},"inputStepIds":[]}'
    )
    parser = IntegrationsParser([integration])
    assert StepJsonAssembler(parser).assemble().decode("utf-8") == expected


def test_assemble_escapes_html_characters():
    parser = IntegrationsParser([ProjectIntegration(name="a<b>&c")])
    output = StepJsonAssembler(parser).assemble().decode("utf-8")
    assert "a\\u003cb\\u003e\\u0026c" in output
    assert json.loads(output)["step"]["configuration"]["integrations"] == [{"name": "a<b>&c"}]