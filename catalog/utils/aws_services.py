import boto3
from flask import current_app


def get_boto3_session():
    """Create a boto3 session with configured credentials"""
    return boto3.Session(
        aws_access_key_id=current_app.config.get('AWS_ACCESS_KEY_ID'),
        aws_secret_access_key=current_app.config.get('AWS_SECRET_ACCESS_KEY'),
        region_name=current_app.config.get('AWS_REGION')
    )


def get_dynamodb_resource():
    """Get DynamoDB resource"""
    session = get_boto3_session()
    return session.resource('dynamodb', endpoint_url=current_app.config.get('DYNAMODB_ENDPOINT_URL'))


def get_s3_client():
    """Get S3 client"""
    session = get_boto3_session()
    return session.client('s3', endpoint_url=current_app.config.get('S3_ENDPOINT_URL'))
