"""
Asset-transfer collaborator.

The controller moves assets only through an ``AssetTransfer``. Both calls may
fail (return ``False``) and both may call back into the pool; the controller
treats them accordingly.

``InMemoryAssetTransfer`` is the reference implementation used by tests and
simulations: participant wallets live in a ``BalanceTable`` and the pool's own
custody balance is tracked per asset.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from ..state.balances import Amount, Asset, BalanceTable, PubKey

TransferHook = Callable[[PubKey, Asset, Amount], None]


class AssetTransfer(Protocol):
    def transfer_in(self, participant: PubKey, asset: Asset, amount: Amount) -> bool:
        """Move *amount* of *asset* from *participant* to the pool."""
        ...

    def transfer_out(self, participant: PubKey, asset: Asset, amount: Amount) -> bool:
        """Move *amount* of *asset* from the pool to *participant*."""
        ...


@runtime_checkable
class RollbackableTransfer(Protocol):
    """A transfer collaborator that can undo its own effects when an operation aborts."""

    def checkpoint(self) -> Any:
        ...

    def rollback(self, saved: Any) -> None:
        ...


class InMemoryAssetTransfer:
    """
    Wallet-backed transfers.

    ``on_transfer_out`` is invoked after an outbound transfer lands, which lets
    tests model a recipient that re-enters the pool.
    """

    def __init__(self, wallets: Optional[BalanceTable] = None) -> None:
        self.wallets = wallets if wallets is not None else BalanceTable()
        self.custody: Dict[Asset, Amount] = {Asset.A: 0, Asset.B: 0}
        self.on_transfer_in: Optional[TransferHook] = None
        self.on_transfer_out: Optional[TransferHook] = None
        self.fail_next: bool = False

    def fund(self, participant: PubKey, asset: Asset, amount: Amount) -> None:
        self.wallets.add(participant, asset, amount)

    def transfer_in(self, participant: PubKey, asset: Asset, amount: Amount) -> bool:
        if self._consume_failure():
            return False
        if self.wallets.get(participant, asset) < amount:
            return False
        self.wallets.subtract(participant, asset, amount)
        self.custody[asset] += amount
        if self.on_transfer_in is not None:
            self.on_transfer_in(participant, asset, amount)
        return True

    def transfer_out(self, participant: PubKey, asset: Asset, amount: Amount) -> bool:
        if self._consume_failure():
            return False
        if self.custody[asset] < amount:
            return False
        self.custody[asset] -= amount
        self.wallets.add(participant, asset, amount)
        if self.on_transfer_out is not None:
            self.on_transfer_out(participant, asset, amount)
        return True

    def checkpoint(self) -> "InMemoryAssetTransfer":
        """Copy wallets and custody (hooks are not copied)."""
        copy = InMemoryAssetTransfer()
        for (pk, asset), amount in self.wallets.get_all_balances().items():
            copy.wallets.set(pk, asset, amount)
        copy.custody = dict(self.custody)
        return copy

    def rollback(self, other: "InMemoryAssetTransfer") -> None:
        """Overwrite wallets and custody with a checkpoint (models the environment's rollback)."""
        keys = set(self.wallets.get_all_balances()) | set(other.wallets.get_all_balances())
        for pk, asset in keys:
            self.wallets.set(pk, asset, other.wallets.get(pk, asset))
        self.custody = dict(other.custody)

    def _consume_failure(self) -> bool:
        if self.fail_next:
            self.fail_next = False
            return True
        return False
