import os


def is_dev_or_test() -> bool:
    return (
        os.getenv("AZURE_FUNCTIONS_ENVIRONMENT") != "Production" or
        os.getenv("DEBUG_RBAC") == "1" or
        os.getenv("E2E_MODE") == "1"
    )


def get_user_id(req) -> str | None:
    # 1. Principal id injected by the auth gateway (App Service Auth) - ALWAYS honored
    val = req.headers.get("x-ms-client-principal-id")
    if val: return val.strip()

    # 2. Dev/Test-only: Allow X-User-Id (for E2E tests, local development)
    # CRITICAL: In Production, ignore X-User-Id to prevent spoofing
    if is_dev_or_test():
        val = req.headers.get("X-User-Id")
        if val: return val.strip()

    return None
