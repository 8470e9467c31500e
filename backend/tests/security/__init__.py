"""Security tests for the review service

This module contains security-focused tests including:
- Authentication bypass attempts
- Privilege escalation between roles
- Sensitive data exposure
"""
