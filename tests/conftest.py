import pytest

from alb_wsgi import AdapterConfig, LambdaHandler
from alb_wsgi.example import app as example_app


class FakeContext:
    """Stand-in for the Lambda context object."""

    function_name = "alb-wsgi-test"
    aws_request_id = "c6af9ac6-7b61-11e6-9a41-93e8deadbeef"

    def __init__(self, remaining_ms=1234):
        self.remaining_ms = remaining_ms

    def get_remaining_time_in_millis(self):
        return self.remaining_ms


def alb_event(method="GET", path="/", query=None, headers=None, body="", is_base64=False):
    return {
        "requestContext": {
            "elb": {"targetGroupArn": "arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/lambda/abc"}
        },
        "httpMethod": method,
        "path": path,
        "queryStringParameters": query if query is not None else {},
        "headers": headers if headers is not None else {},
        "body": body,
        "isBase64Encoded": is_base64,
    }


@pytest.fixture
def app():
    example_app.config["TESTING"] = True
    return example_app


@pytest.fixture
def config():
    return AdapterConfig(trust_upstream_escaping=True, url_scheme="https")


@pytest.fixture
def lambda_handler(app, config):
    return LambdaHandler(app, config)


@pytest.fixture
def context():
    return FakeContext()


@pytest.fixture
def make_event():
    return alb_event
