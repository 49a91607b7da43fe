"""AWS Lambda entry point for the gateway."""
from mangum import Mangum

from ipn_gateway.api.main import app

# Create ASGI adapter for Lambda
handler = Mangum(app, lifespan="off")
