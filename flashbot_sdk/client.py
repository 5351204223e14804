"""
FlashbotClient - Main client for Flashbots-style bundle relays.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_TIMEOUT, SIGNATURE_HEADER, Method, Relay, resolve_relay_url
from .exceptions import RelayError, TransportError
from .models import (
    BundleStats,
    BundleStatsParams,
    CallBundleParams,
    CallBundleResult,
    CancelBundleParams,
    InclusionOutcome,
    PrivateRawTransactionParams,
    PrivateTransactionParams,
    RelayResponse,
    RequestEnvelope,
    SendBundleParams,
    SendBundleResult,
    UserStats,
    UserStatsParams,
    WireModel,
)
from .signer import LocalSigner, RequestSigner, Signer
from .watcher import BlockSource, InclusionWatcher

R = TypeVar('R', bound=BaseModel)
P = TypeVar('P', bound=WireModel)

# Keys whose values are signed raw transactions; never logged verbatim
_REDACTED_KEYS = ("txs", "tx")

# Keys of a simulate() dict that only apply to eth_callBundle
_SIMULATION_KEYS = {
    "stateBlockNumber": ("stateBlockNumber", "state_block_number"),
    "timestamp": ("timestamp",),
}


@dataclass
class BundleHandle:
    """
    Outcome of a successful simulation.

    ``send`` submits the originally simulated bundle parameters with
    eth_sendBundle. Every call issues a new request.
    """
    simulation: CallBundleResult
    send: Callable[[], SendBundleResult]


class FlashbotClient:
    """
    Client for a Flashbots-style relay.

    This client handles:
    1. Authenticated JSON-RPC calls to the relay (stats, simulation, bundle
       and private transaction submission, cancellation)
    2. Watching new blocks to decide whether a bundle was included

    Each relay call is exactly one HTTP round trip; failures are raised to the
    caller and never retried. Calls from several threads may share a client.
    """

    def __init__(
        self,
        signer: Optional[Signer] = None,
        relay: Union[Relay, str] = Relay.MAINNET,
        priv_key: Optional[str] = None,
        block_source: Optional[BlockSource] = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the FlashbotClient

        Args:
            signer: Signing identity used to authenticate requests
                (optional if priv_key provided)
            relay: Relay enum member, network name or custom relay URL
            priv_key: Private key of the authentication account
                (optional if signer provided)
            block_source: Source of new-block notifications, required for
                wait_for_inclusion
            timeout: Timeout for HTTP requests in seconds
            session: Optional requests session to reuse
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If neither priv_key nor signer is provided
            ValueError: If the relay URL is unknown or insecure
        """
        if not priv_key and signer is None:
            raise ValueError("Either priv_key or signer must be provided")

        self.relay_url = resolve_relay_url(relay)
        self.logger = logger or logging.getLogger(__name__)
        self.signer: Signer = signer if signer is not None else LocalSigner(priv_key)
        self.request_signer = RequestSigner(self.signer, logger=self.logger)
        self.block_source = block_source
        self.timeout = timeout
        self.session = session or requests.Session()

        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

    @property
    def address(self) -> str:
        """Address of the account authenticating relay requests"""
        return self.request_signer.address

    def get_user_stats(
        self,
        params: Union[int, str, UserStatsParams, Dict[str, Any], Sequence[Union[UserStatsParams, Dict[str, Any]]]]
    ) -> UserStats:
        """
        Get the authenticating account's relay statistics.

        Args:
            params: Block number (int or hex), UserStatsParams, or a list of
                params objects as sent on the wire (e.g. ``[{"blockNumber": "0x1"}]``)

        Returns:
            Aggregated gas and validator payment figures

        Raises:
            ValueError: If an empty list is given
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: If the relay reports an error
        """
        if isinstance(params, (int, str)):
            entries = [UserStatsParams(block_number=params)]
        elif isinstance(params, (list, tuple)):
            entries = list(params)
        else:
            entries = [params]
        if not entries:
            raise ValueError("get_user_stats needs at least one params object")

        response = self._call(
            Method.GET_USER_STATS_V2,
            [self._coerce(entry, UserStatsParams) for entry in entries],
        )
        return self._result(response, UserStats)

    def get_bundle_stats(self, bundle_hash: str, block_number: Union[int, str]) -> BundleStats:
        """
        Get the relay's view of a submitted bundle.

        The relay often lags behind the chain: a bundle may already be
        included while its stats are not updated. Use wait_for_inclusion to
        decide inclusion.

        Args:
            bundle_hash: Hash returned by send_bundle
            block_number: Block the bundle targeted

        Returns:
            Simulation and priority status of the bundle

        Raises:
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: If the relay reports an error
        """
        params = BundleStatsParams(bundle_hash=bundle_hash, block_number=block_number)
        response = self._call(Method.GET_BUNDLE_STATS_V2, [params])
        return self._result(response, BundleStats)

    def cancel_bundle(self, tx_hash: str) -> Any:
        """
        Cancel a private transaction or bundle by transaction hash.

        Returns:
            The relay's acknowledgement, unmodified
        """
        response = self._call(Method.CANCEL_BUNDLE, [CancelBundleParams(tx_hash=tx_hash)])
        return response.result

    def send_private_raw_transaction(
        self,
        params: Union[PrivateRawTransactionParams, Dict[str, Any]]
    ) -> Any:
        """
        Submit a signed transaction privately, outside the public mempool.

        Returns:
            The relay's acknowledgement, unmodified
        """
        response = self._call(
            Method.SEND_PRIVATE_RAW_TRANSACTION,
            [self._coerce(params, PrivateRawTransactionParams)],
        )
        return response.result

    def send_private_transaction(
        self,
        params: Union[PrivateTransactionParams, Dict[str, Any]]
    ) -> Any:
        """
        Submit a signed transaction privately, valid up to ``maxBlockNumber``.

        Returns:
            The relay's acknowledgement, unmodified
        """
        response = self._call(
            Method.SEND_PRIVATE_TRANSACTION,
            [self._coerce(params, PrivateTransactionParams)],
        )
        return response.result

    def call_bundle(self, params: Union[CallBundleParams, Dict[str, Any]]) -> CallBundleResult:
        """
        Simulate a bundle against a block (eth_callBundle).

        Returns:
            Per-transaction and aggregate simulation figures

        Raises:
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: If the relay reports an error
        """
        response = self._call(Method.CALL_BUNDLE, [self._coerce(params, CallBundleParams)])
        return self._result(response, CallBundleResult)

    def send_bundle(self, params: Union[SendBundleParams, Dict[str, Any]]) -> SendBundleResult:
        """
        Submit a bundle for inclusion (eth_sendBundle).

        Returns:
            The bundle hash assigned by the relay

        Raises:
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: If the relay reports an error
        """
        params = self._coerce(params, SendBundleParams)
        response = self._call(Method.SEND_BUNDLE, [params])
        result = self._result(response, SendBundleResult)
        self.logger.info(f"Bundle sent for block {params.block_number}: {result.bundle_hash}")
        return result

    def simulate(
        self,
        params: Union[SendBundleParams, CallBundleParams, Dict[str, Any]],
        state_block_number: Union[int, str] = "latest",
        timestamp: Optional[int] = None
    ) -> BundleHandle:
        """
        Simulate a bundle and return a handle able to send it.

        The handle's ``send`` re-submits the parameters given here, not the
        simulation result, so timestamps, reverting hashes, builders and the
        replacement UUID are preserved.

        Args:
            params: Bundle to simulate; dicts are read as SendBundleParams and
                may also carry ``stateBlockNumber`` and ``timestamp``, which
                only apply to the simulation
            state_block_number: State block for the simulation (ignored when
                params is a CallBundleParams or a dict naming one)
            timestamp: Simulation timestamp (ignored when params is a
                CallBundleParams or a dict naming one)

        Returns:
            BundleHandle with the simulation result and a send action

        Raises:
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: If the simulation reports an error; no handle is built
        """
        if isinstance(params, CallBundleParams):
            call_params = params
            send_params = SendBundleParams(txs=params.txs, block_number=params.block_number)
        else:
            if isinstance(params, dict):
                params, options = self._split_simulation_options(params)
                state_block_number = options.get("stateBlockNumber", state_block_number)
                timestamp = options.get("timestamp", timestamp)
            send_params = self._coerce(params, SendBundleParams)
            call_params = send_params.to_call_params(
                state_block_number=state_block_number,
                timestamp=timestamp,
            )

        simulation = self.call_bundle(call_params)
        if simulation.reverted:
            self.logger.warning(
                f"Simulation of bundle {simulation.bundle_hash} has "
                f"{len(simulation.reverted)} reverting transaction(s)"
            )

        return BundleHandle(simulation=simulation, send=lambda: self.send_bundle(send_params))

    def wait_for_inclusion(
        self,
        target_block: int,
        tx_hashes: Iterable[str],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        block_source: Optional[BlockSource] = None
    ) -> InclusionOutcome:
        """
        Block until one of ``tx_hashes`` appears on-chain or ``target_block``
        passes without it.

        Args:
            target_block: Last block height at which inclusion still counts
            tx_hashes: Transaction hashes of the bundle
            timeout: Optional wall-clock limit in seconds
            cancel_event: Optional event that abandons the wait when set
            block_source: Overrides the client's block source

        Returns:
            InclusionOutcome with status success or passed

        Raises:
            ValueError: If no block source is configured
            InclusionTimeoutError: If ``timeout`` elapses first
            InclusionCancelledError: If ``cancel_event`` is set first
        """
        source = block_source or self.block_source
        if source is None:
            raise ValueError("A block_source is required to wait for inclusion")

        watcher = InclusionWatcher(source, target_block, tx_hashes, logger=self.logger)
        return watcher.wait(timeout=timeout, cancel_event=cancel_event)

    def build_envelope(self, method: Method, params: Sequence[WireModel]) -> RequestEnvelope:
        """Build a request envelope with a fresh id."""
        with self._ids_lock:
            request_id = next(self._ids)
        return RequestEnvelope(
            id=request_id,
            method=method,
            params=[p.to_wire() for p in params],
        )

    def _call(self, method: Method, params: Sequence[WireModel]) -> RelayResponse:
        """
        Perform one signed JSON-RPC call and return the success response.

        Raises:
            SigningError: If signing the body fails
            TransportError: On non-2xx HTTP status or connection failure
            RelayError: On an embedded relay error or unreadable body
        """
        envelope = self.build_envelope(method, params)
        body = envelope.serialize()
        signature = self.request_signer.sign(body)

        self.logger.debug(
            f"Relay request {method.value} id={envelope.id}: "
            f"{self._sanitize_params(envelope.params)}"
        )

        try:
            response = self.session.post(
                self.relay_url,
                data=body.encode("utf-8"),
                headers={
                    "Content-Type": "application/json",
                    SIGNATURE_HEADER: signature,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.logger.error(f"Relay request {method.value} failed: {e}")
            raise TransportError(None, str(e)) from e

        if not 200 <= response.status_code < 300:
            self.logger.error(
                f"Relay request {method.value} failed with HTTP "
                f"{response.status_code} {response.reason}"
            )
            raise TransportError(response.status_code, response.reason or "")

        return self._parse_response(method, response)

    def _parse_response(self, method: Method, response: requests.Response) -> RelayResponse:
        try:
            payload = response.json()
        except ValueError as e:
            self.logger.error(f"Invalid JSON response from relay for {method.value}: {e}")
            raise RelayError(f"Invalid JSON response from relay: {e}") from e

        if not isinstance(payload, dict):
            raise RelayError(f"Unexpected relay response for {method.value}: {payload!r}")

        try:
            parsed = RelayResponse.model_validate(payload)
        except ValidationError as e:
            raise RelayError(f"Malformed relay response for {method.value}: {e}") from e

        detail = parsed.error_detail()
        if detail is not None:
            self.logger.error(f"Relay returned an error for {method.value}: {detail.message}")
            raise RelayError(detail.message, code=detail.code)

        return parsed

    def _result(self, response: RelayResponse, model: Type[R]) -> R:
        if response.result is None:
            raise RelayError("Relay response carries neither result nor error")
        try:
            return model.model_validate(response.result)
        except ValidationError as e:
            raise RelayError(f"Unexpected result shape for {model.__name__}: {e}") from e

    @staticmethod
    def _coerce(params: Union[P, Dict[str, Any]], model: Type[P]) -> P:
        if isinstance(params, model):
            return params
        if isinstance(params, WireModel):
            return model.model_validate(params.model_dump())
        if isinstance(params, dict):
            return model.model_validate(params)
        raise TypeError(f"Expected {model.__name__} or dict, got {type(params).__name__}")

    @staticmethod
    def _split_simulation_options(params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Separate simulation-only keys from the bundle fields of a dict."""
        bundle = dict(params)
        options = {}
        for name, keys in _SIMULATION_KEYS.items():
            for key in keys:
                if key in bundle:
                    options[name] = bundle.pop(key)
        return bundle, options

    @staticmethod
    def _sanitize_params(params: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Remove signed transactions from params for logging

        Args:
            params: Wire params to sanitize

        Returns:
            Copy of params safe to log
        """
        sanitized = []
        for entry in params:
            entry = dict(entry)
            for key in _REDACTED_KEYS:
                if key in entry:
                    entry[key] = f"[REDACTED - {len(str(entry[key]))} chars]"
            sanitized.append(entry)
        return sanitized
