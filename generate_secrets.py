#!/usr/bin/env python3
"""
Generate secure secrets for F1 Pick'em application
Run this script to generate the required SECRET_KEY and an initial admin password
"""

import secrets


def generate_secrets():
    """Generate secure random values for the .env file"""
    print("🔐 Generating secure secrets for F1 Pick'em...")
    print("=" * 50)

    secret_key = secrets.token_urlsafe(32)
    admin_password = secrets.token_urlsafe(12)

    print(f"SECRET_KEY={secret_key}")
    print(f"# Suggested admin password: {admin_password}")
    print("# python manage.py user create-admin <username> <email> <password>")

    print("=" * 50)
    print("📝 Copy these values to your .env file")
    print("⚠️  Keep these secrets secure and never commit them to version control!")


if __name__ == "__main__":
    generate_secrets()
