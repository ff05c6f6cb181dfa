"""
Setup verification script for the portfolio backend.
Checks that packages, configuration and the backing services are in place.
"""
import asyncio
import importlib
import os
import sys
from typing import Awaitable, Callable, List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

# import name -> distribution name
REQUIRED_PACKAGES = {
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
    "sqlalchemy": "sqlalchemy",
    "asyncpg": "asyncpg",
    "pgvector": "pgvector",
    "pydantic_settings": "pydantic-settings",
    "email_validator": "email-validator",
    "httpx": "httpx",
    "aiofiles": "aiofiles",
    "multipart": "python-multipart",
    "numpy": "numpy",
    "fitz": "PyMuPDF",
    "docx": "python-docx",
    "pytesseract": "pytesseract",
    "PIL": "Pillow",
    "langdetect": "langdetect",
}


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


def _asyncpg_dsn(database_url: str) -> str:
    """asyncpg wants a plain postgresql:// URL, not the SQLAlchemy dialect form."""
    return database_url.replace("postgresql+asyncpg://", "postgresql://", 1)


async def check_python_version() -> bool:
    """Check Python version is 3.11+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 11:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    print_status(f"Python version {version.major}.{version.minor} (requires 3.11+)", False)
    return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    all_installed = True
    for module, distribution in REQUIRED_PACKAGES.items():
        try:
            importlib.import_module(module)
            print_status(f"Package '{distribution}' installed", True)
        except ImportError:
            print_status(f"Package '{distribution}' missing (pip install {distribution})", False)
            all_installed = False
    return all_installed


async def check_env_file() -> bool:
    """Check the .env file and the secrets that must not keep their defaults."""
    from app.config import settings

    ok = os.path.exists(".env")
    print_status(".env file exists" if ok else ".env file missing", ok)

    for name in ("ADMIN_PASSWORD", "ADMIN_API_TOKEN"):
        changed = not getattr(settings, name).startswith("change-me")
        print_status(f"{name} {'set' if changed else 'still uses the default value'}", changed)
        ok = ok and changed

    has_key = bool(settings.ANTHROPIC_API_KEY)
    print_status(
        f"ANTHROPIC_API_KEY {'set' if has_key else 'not set (Ollama will answer chat turns)'}",
        has_key,
    )
    return ok


async def check_upload_dir() -> bool:
    """Check if the upload directory exists."""
    from app.config import settings

    if os.path.isdir(settings.UPLOAD_DIR):
        print_status(f"Upload directory exists ({settings.UPLOAD_DIR})", True)
        return True
    print_status(f"Upload directory {settings.UPLOAD_DIR} missing (created on startup)", False)
    return False


async def check_ollama() -> bool:
    """Check if Ollama is running and has the embedding and fallback models."""
    from app.config import settings

    try:
        import httpx

        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(f"{settings.OLLAMA_BASE_URL}/api/tags")

        if response.status_code != 200:
            print_status(f"Ollama service error (status {response.status_code})", False)
            return False

        print_status("Ollama service is running", True)
        model_names = [m["name"] for m in response.json().get("models", [])]

        embed = settings.OLLAMA_EMBED_MODEL
        llm = settings.OLLAMA_LLM_MODEL
        has_embed = any(name.startswith(embed.split(":")[0]) for name in model_names)
        has_llm = any(name == llm or name.startswith(llm.split(":")[0]) for name in model_names)

        print_status(f"Embedding model ({embed}): {'Found' if has_embed else 'Missing'}", has_embed)
        print_status(f"LLM model ({llm}): {'Found' if has_llm else 'Missing'}", has_llm)
        return has_embed and has_llm

    except Exception as e:
        print_status(f"Ollama connection failed: {str(e)}", False)
        print(f"  {YELLOW}Make sure Ollama is installed and running{RESET}")
        print(f"  {YELLOW}Install from: https://ollama.ai/{RESET}")
        return False


async def check_postgres() -> bool:
    """Check if PostgreSQL is reachable and has the pgvector extension."""
    from app.config import settings

    try:
        import asyncpg

        conn = await asyncpg.connect(_asyncpg_dsn(settings.DATABASE_URL), timeout=5)
        result = await conn.fetchval(
            "SELECT COUNT(*) FROM pg_extension WHERE extname = 'vector'"
        )
        await conn.close()

        print_status("PostgreSQL connection successful", True)
        print_status(f"pgvector extension: {'Installed' if result > 0 else 'Missing'}", result > 0)
        return result > 0

    except Exception as e:
        print_status(f"PostgreSQL connection failed: {str(e)}", False)
        print(f"  {YELLOW}Check DATABASE_URL and that the server is running{RESET}")
        return False


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Portfolio Backend - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, Callable[[], Awaitable[bool]]]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment", check_env_file),
        ("Upload Directory", check_upload_dir),
        ("PostgreSQL + pgvector", check_postgres),
        ("Ollama + Models", check_ollama),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the backend:{RESET}")
        print("  uvicorn app.main:app --reload")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the backend.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
