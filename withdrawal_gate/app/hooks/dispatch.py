"""Hook dispatch restricting interceptor entry points to recognized proxies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn

from ..gates.access import ProxyRegistry
from ..gates.enforcement import require_recognized_caller
from ..quota.models import WithdrawalAuthorization
from .interceptor import WithdrawalInterceptor
from .transfers import TransferLock


@dataclass
class HookDispatcher:
    """Routes vault hook calls after checking who is calling."""

    proxies: ProxyRegistry
    interceptor: WithdrawalInterceptor
    transfers: TransferLock

    def withdraw(self, caller: str, amount: int, account: str) -> WithdrawalAuthorization:
        require_recognized_caller(self.proxies, caller)
        return self.interceptor.on_withdraw(amount, account)

    def redeem(self, caller: str, shares: int, account: str) -> WithdrawalAuthorization:
        require_recognized_caller(self.proxies, caller)
        return self.interceptor.on_redeem(shares, account)

    # Transfers are refused before the caller is looked at.
    def transfer(self, caller: str, recipient: str, amount: int) -> NoReturn:
        self.transfers.transfer(recipient, amount, caller=caller)

    def transfer_from(self, caller: str, owner: str, recipient: str, amount: int) -> NoReturn:
        self.transfers.transfer_from(owner, recipient, amount, caller=caller)

    def transfer_from_max(self, caller: str, owner: str, recipient: str) -> NoReturn:
        self.transfers.transfer_from_max(owner, recipient, caller=caller)
