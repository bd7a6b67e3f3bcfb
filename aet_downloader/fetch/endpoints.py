"""URL and query builders for SIAET endpoints."""
from aet_downloader.jobs.months import format_month

TOKEN_PATH = "/api/token/"
AET_DETAIL_PATH = "/api/aet/detalhe/v1/"


def get_token_url(base_url: str) -> str:
    """Token endpoint URL."""
    return f"{base_url}{TOKEN_PATH}"


def get_token_params(client_id: str, secret: str) -> dict[str, str]:
    """Query parameters for the token endpoint."""
    return {"Id": client_id, "Secret": secret}


def get_aet_url(base_url: str) -> str:
    """Monthly AET detail endpoint URL."""
    return f"{base_url}{AET_DETAIL_PATH}"


def get_aet_params(token: str, month: int, year: int) -> dict[str, str]:
    """Query parameters for one month of AET records."""
    return {
        "token": token,
        "mesLiberacaoAet": format_month(month),
        "anoLiberacaoAet": str(year),
    }
