"""Export and import of auction state as CSV and JSON."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable

import pandas as pd

from ..config.schema import AuctionConfig, ScenarioBid
from ..engine.state import Bid, SimulationState
from ..simulation.runner import AuctionResult, replay_bids

SNAPSHOT_VERSION = "1.0"


def checkpoints_to_dataframe(state: SimulationState) -> pd.DataFrame:
    """One row per checkpoint, in block order."""
    data = []
    for block in sorted(state.checkpoints):
        checkpoint = state.checkpoints[block]
        data.append({
            'block': checkpoint.block_number,
            'clearing_price': checkpoint.clearing_price,
            'cumulative_emission': checkpoint.cumulative_emission,
            'currency_raised': checkpoint.currency_raised,
            'total_cleared': checkpoint.total_cleared,
            'currency_at_clearing_price': checkpoint.currency_raised_at_clearing_price,
        })
    return pd.DataFrame(data)


def bids_to_dataframe(bids: Iterable[Bid]) -> pd.DataFrame:
    """One row per bid; pass settled bids to get final fills."""
    data = []
    for bid in bids:
        data.append({
            'id': bid.id,
            'owner': bid.owner,
            'start_block': bid.start_block,
            'max_price': bid.max_price,
            'amount': bid.amount,
            'effective_amount': bid.effective_amount,
            'status': bid.status.value,
            'tokens_filled': bid.tokens_filled,
            'currency_spent': bid.currency_spent,
            'refund': bid.refund,
        })
    return pd.DataFrame(data)


def export_csv(state: SimulationState, filepath: str, bids_filepath: str = None):
    """Export checkpoints (and optionally bids) to CSV."""
    checkpoints_to_dataframe(state).to_csv(filepath, index=False)
    if bids_filepath:
        bids = [bid for _, bid in sorted(state.bids.items())]
        bids_to_dataframe(bids).to_csv(bids_filepath, index=False)


def _bid_to_dict(bid: Bid) -> Dict[str, Any]:
    return {
        'id': bid.id,
        'owner': bid.owner,
        'start_block': bid.start_block,
        'max_price': str(bid.max_price),
        'amount': str(bid.amount),
        'effective_amount': str(bid.effective_amount),
        'status': bid.status.value,
        'tokens_filled': str(bid.tokens_filled),
        'currency_spent': str(bid.currency_spent),
        'refund': str(bid.refund),
    }


def snapshot_to_dict(state: SimulationState, config: AuctionConfig) -> Dict[str, Any]:
    """
    Serialize config, state summary, bids and checkpoints.

    Decimal values are written as strings so a round trip through JSON is exact.
    """
    return {
        'version': SNAPSHOT_VERSION,
        'exported_at': datetime.now(timezone.utc).isoformat(),
        'config': config.to_dict(),
        'config_hash': config.compute_hash(),
        'state': {
            'current_block': state.current_block,
            'clearing_price': str(state.clearing_price),
            'currency_raised': str(state.currency_raised),
            'total_cleared': str(state.total_cleared),
            'cumulative_emission': state.cumulative_emission,
            'is_graduated': state.is_graduated,
            'is_ended': state.is_ended,
        },
        'bids': [_bid_to_dict(bid) for _, bid in sorted(state.bids.items())],
        'checkpoints': [
            {
                'block': cp.block_number,
                'clearing_price': str(cp.clearing_price),
                'cumulative_emission': cp.cumulative_emission,
                'currency_raised': str(cp.currency_raised),
                'total_cleared': str(cp.total_cleared),
            }
            for _, cp in sorted(state.checkpoints.items())
        ],
    }


def export_json(state: SimulationState, config: AuctionConfig, filepath: str):
    """Export an auction snapshot to JSON."""
    with open(filepath, 'w') as f:
        json.dump(snapshot_to_dict(state, config), f, indent=2)


def snapshot_from_dict(data: Dict[str, Any]) -> AuctionResult:
    """
    Rebuild an auction from a snapshot by replaying its bids.

    Only the config and the bid list are trusted; every derived value is
    recomputed by the engine. The replay stops at the snapshot's block.
    """
    if 'config' not in data or 'bids' not in data:
        raise ValueError("Snapshot must contain 'config' and 'bids'")

    config = AuctionConfig.from_dict(data['config'])
    bids = [
        ScenarioBid(
            block=entry['start_block'],
            max_price=Decimal(entry['max_price']),
            amount=Decimal(entry['amount']),
            owner=entry['owner'],
        )
        for entry in data['bids']
    ]
    until_block = (data.get('state') or {}).get('current_block')
    return replay_bids(config, bids, until_block=until_block)


def import_json(filepath: str) -> AuctionResult:
    """Load a snapshot written by ``export_json``."""
    with open(filepath, 'r') as f:
        data = json.load(f)
    return snapshot_from_dict(data)
