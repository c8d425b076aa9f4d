"""
Configuration Diagnostic Tool

Checks the OpenAI / Azure OpenAI settings and Google Application Default
Credentials before the assistant is started.

    python diagnose.py            # configuration only
    python diagnose.py --connect  # also send a test completion
"""

import sys
from typing import List

import google.auth
from google.auth.exceptions import DefaultCredentialsError

from assistant import create_openai_client
from config import Settings, get_settings


def collect_config_issues(settings: Settings) -> List[str]:
    """Return a list of configuration problems (empty when everything looks good)"""
    issues = list(settings.env_problems)

    if settings.use_azure:
        if not settings.azure_openai_key:
            issues.append("❌ AZURE_OPENAI_KEY is not set")
        if not settings.azure_openai_deployment:
            issues.append("❌ AZURE_OPENAI_DEPLOYMENT is not set")
        if not settings.azure_openai_endpoint.startswith("https://"):
            issues.append("⚠️  AZURE_OPENAI_ENDPOINT should start with 'https://'")
    else:
        if not settings.openai_api_key:
            issues.append("❌ OPENAI_API_KEY is not set (and AZURE_OPENAI_ENDPOINT is not set either)")
        elif len(settings.openai_api_key) < 20:
            issues.append("⚠️  OPENAI_API_KEY seems too short (might be invalid)")

    if settings.request_deadline_seconds <= 0:
        issues.append("❌ REQUEST_DEADLINE_SECONDS must be positive")
    elif settings.request_deadline_seconds < settings.openai_timeout_seconds:
        issues.append("⚠️  REQUEST_DEADLINE_SECONDS is shorter than OPENAI_TIMEOUT_SECONDS")

    if settings.gateway_wait_for_operations:
        if settings.gateway_poll_interval_seconds <= 0:
            issues.append("❌ GATEWAY_POLL_INTERVAL_SECONDS must be positive")
        if settings.gateway_operation_timeout_seconds * 3 > settings.request_deadline_seconds:
            issues.append(
                "⚠️  Three polled operations can outlast REQUEST_DEADLINE_SECONDS; "
                "raise the deadline or lower GATEWAY_OPERATION_TIMEOUT_SECONDS"
            )

    return issues


def check_google_credentials() -> List[str]:
    try:
        _, project = google.auth.default()
    except DefaultCredentialsError as e:
        return [f"❌ Google Application Default Credentials not found: {e}"]

    print(f"   ✅ Google credentials found (default project: {project})")
    return []


def check_connection(settings: Settings) -> bool:
    """Send a tiny completion to make sure the model is reachable"""
    try:
        client = create_openai_client(settings)
        print("\nSending test request...")
        response = client.chat.completions.create(
            model=settings.model_name,
            messages=[{"role": "user", "content": "Hello"}],
            max_completion_tokens=10
        )
        print("✅ Connection successful!")
        print(f"   Response: {response.choices[0].message.content}")
        return True

    except Exception as e:
        error_msg = str(e)
        print(f"\n❌ Connection failed:")
        print(f"   {error_msg}")

        if '404' in error_msg:
            print("\n💡 404 Error: check the model / deployment name and endpoint URL")
        elif '401' in error_msg:
            print("\n💡 401 Error: Invalid API key")
        return False


def main(argv: List[str]) -> int:
    settings = get_settings()

    print("=" * 60)
    print("API Gateway Assistant Configuration Check")
    print("=" * 60)
    print(f"\n   Provider: {'Azure OpenAI' if settings.use_azure else 'OpenAI'}")
    print(f"   Model: {settings.model_name}")

    issues = collect_config_issues(settings)
    issues.extend(check_google_credentials())

    print("\n" + "=" * 60)
    if issues:
        print("Issues Found:")
        for issue in issues:
            print(f"  {issue}")
        print("\n💡 Fix these issues in your .env file")
        return 1

    print("✅ All configuration looks good!")
    if "--connect" in argv:
        return 0 if check_connection(settings) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
