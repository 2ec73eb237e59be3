"""Shared DynamoDB utilities.

This package centralizes:
- boto3 client/resource configuration
- retry/backoff policy for transient failures
- typed errors for consistent HTTP problem responses
- conditional write and atomic counter helpers
"""
