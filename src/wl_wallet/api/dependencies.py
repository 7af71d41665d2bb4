"""FastAPI dependency: the process-wide WalletApplicationService.

Built once in the app lifespan (src/main.py) and stored on app.state.
Tests override this dependency with a service wired to fakes.
"""

from fastapi import Request

from src.wl_wallet.application.service import WalletApplicationService


def get_wallet_service(request: Request) -> WalletApplicationService:
    return request.app.state.wallet_service
