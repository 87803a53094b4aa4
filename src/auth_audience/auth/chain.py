"""Authenticator chaining.

Runs strategies strictly one after another. The first success wins and
nothing after it runs; if every strategy fails, the *first* failure is
reported, since the first configured strategy owns user-facing errors.
A chain is itself an authenticator, so chains nest.
"""

from __future__ import annotations

from typing import Sequence

from starlette.requests import Request

from auth_audience.auth.outcomes import AuthFailure, AuthOutcome, ChainResult, FailureKind
from auth_audience.auth.strategies import Authenticator, strategy_name
from auth_audience.observability import get_logger

logger = get_logger(__name__)


class AuthenticatorChain:
    """Composite authenticator with first-success / first-failure semantics.

    Example:
        >>> chain = AuthenticatorChain([JwtAudienceAuthenticator(config), AnonymousAuthenticator()])
        >>> result = await chain.run(request)
        >>> result.strategy
        'jwt'
    """

    def __init__(
        self,
        authenticators: Sequence[Authenticator],
        *,
        name: str = "chain",
        server_error_status: int = 500,
    ) -> None:
        """Initialize the chain.

        Args:
            authenticators: Strategies in priority order.
            name: Name reported when the chain is nested in another chain.
            server_error_status: Status for an empty chain or a strategy that raises.
        """
        self._authenticators = tuple(authenticators)
        self._server_error_status = server_error_status
        self.name = name

    @property
    def authenticators(self) -> tuple[Authenticator, ...]:
        return self._authenticators

    def _internal_error(self, error: BaseException, strategy: str | None) -> AuthFailure:
        return AuthFailure(
            kind=FailureKind.INTERNAL_ERROR,
            error=error,
            status=self._server_error_status,
            strategy=strategy,
        )

    async def run(self, request: Request) -> ChainResult:
        """Run the strategies in order and pick the outcome.

        Returns:
            ChainResult with the first success, or the first failure when
            all strategies fail. An empty chain yields an INTERNAL_ERROR failure.
        """
        if not self._authenticators:
            logger.error("auth_audience.chain.empty", chain=self.name)
            outcome = self._internal_error(Exception("NO_AUTHENTICATORS"), self.name)
            return ChainResult(outcome=outcome, strategy=None, index=None, attempts=0)

        first_failure: ChainResult | None = None
        for index, authenticator in enumerate(self._authenticators):
            name = strategy_name(authenticator)
            try:
                outcome = await authenticator.authenticate(request)
            except Exception as e:
                logger.exception("auth_audience.chain.strategy_raised", chain=self.name, strategy=name)
                outcome = self._internal_error(e, name)

            if outcome.success:
                logger.debug("auth_audience.chain.succeeded", chain=self.name, strategy=name, index=index)
                return ChainResult(outcome=outcome, strategy=name, index=index, attempts=index + 1)

            if first_failure is None:
                if outcome.status is None:
                    outcome = outcome.with_response(outcome.kind.category.default_status, outcome.body)
                first_failure = ChainResult(
                    outcome=outcome, strategy=name, index=index, attempts=index + 1
                )

        assert first_failure is not None
        logger.info(
            "auth_audience.chain.failed",
            chain=self.name,
            strategy=first_failure.strategy,
            kind=first_failure.outcome.kind.value,
            attempts=len(self._authenticators),
        )
        return ChainResult(
            outcome=first_failure.outcome,
            strategy=first_failure.strategy,
            index=first_failure.index,
            attempts=len(self._authenticators),
        )

    async def authenticate(self, request: Request) -> AuthOutcome:
        """Authenticator interface: the chosen outcome only."""
        return (await self.run(request)).outcome


__all__ = ["AuthenticatorChain"]
