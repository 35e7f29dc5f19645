"""Service layer for picqer-ontime.

Provides the On-Time payload builder, API client, and the shipping-method
service that ties them together for the HTTP front door and the CLI.
"""
