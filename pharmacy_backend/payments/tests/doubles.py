# payments/tests/doubles.py

"""Fixed-outcome gateways for tests."""

import threading

from payments.services.gateways import CardGateway, GatewayResult, WalletGateway


class FixedCardGateway(CardGateway):
    def __init__(self, approved=True, message="", transaction_id="CARD-TEST", authorization_code="AUTHTEST"):
        self.result = GatewayResult(
            approved=approved,
            message=message,
            transaction_id=transaction_id,
            authorization_code=authorization_code,
        )
        self.calls = []

    def authorize(self, amount, method, extra):
        self.calls.append((amount, method, extra))
        return self.result


class FixedWalletGateway(WalletGateway):
    def __init__(self, approved=True, message="", transaction_id="WALLET-TEST"):
        self.result = GatewayResult(approved=approved, message=message, transaction_id=transaction_id)
        self.calls = []

    def charge(self, amount, method, extra):
        self.calls.append((amount, method, extra))
        return self.result


class HangingCardGateway(CardGateway):
    """Blocks until released; used to exercise the dispatch timeout."""

    def __init__(self):
        self.release = threading.Event()

    def authorize(self, amount, method, extra):
        self.release.wait(5)
        return GatewayResult(approved=True)


class DeclinedCardGateway(FixedCardGateway):
    """Importable by dotted path from settings overrides."""

    def __init__(self):
        super().__init__(approved=False, message="Payment declined by bank")
