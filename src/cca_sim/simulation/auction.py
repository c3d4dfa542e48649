"""Block orchestrator - bid submission and block-by-block advancement.

Every public function takes a state and returns a new one; the argument is
never modified. ``advance_to_block`` copies once and then steps through every
intermediate block so checkpoints and bid statuses reflect each of them.
"""

import logging
from typing import List, Mapping, Union

from pydantic import ValidationError

from ..config.schema import AuctionConfig, BidInput
from ..engine.clearing import find_clearing_price
from ..engine.distribution import distribute
from ..engine.emission import cumulative_emission
from ..engine.errors import BidValidationError
from ..engine.fixed_point import MPS_TOTAL, Q96, RESOLUTION, mul_div, to_fixed
from ..engine.state import Bid, BidStatus, Checkpoint, SimulationState
from ..engine.ticks import TickLedger

logger = logging.getLogger(__name__)

BidLike = Union[BidInput, Mapping]


def create_initial_state(config: AuctionConfig) -> SimulationState:
    """Fresh state at the start block with the floor tick and first checkpoint."""
    floor_q96 = config.floor_price_q96
    state = SimulationState(
        current_block=config.start_block,
        clearing_price_q96=floor_q96,
        ticks=TickLedger(floor_q96),
    )
    state.checkpoints[config.start_block] = Checkpoint(
        block_number=config.start_block,
        clearing_price_q96=floor_q96,
        cumulative_emission=0,
        cumulative_emission_per_price=0,
        currency_raised_q96_x7=0,
        total_cleared_q96_x7=0,
    )
    return state


def reset_to_start(config: AuctionConfig) -> SimulationState:
    """Discard all progress and start the auction over."""
    return create_initial_state(config)


def _coerce_bid_input(bid_input: BidLike) -> BidInput:
    if isinstance(bid_input, BidInput):
        return bid_input
    try:
        return BidInput(**bid_input)
    except ValidationError as exc:
        raise BidValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        ) from exc


def validate_bid(bid_input: BidLike, state: SimulationState, config: AuctionConfig) -> List[str]:
    """
    Check a bid against the current auction state.

    Returns:
        List of error messages (empty when the bid is acceptable)
    """
    bid_input = _coerce_bid_input(bid_input)
    errors = []

    if to_fixed(bid_input.max_price) <= state.clearing_price_q96:
        errors.append(
            f"Max price must be above the current clearing price ({state.clearing_price.normalize()})"
        )
    if not config.is_tick_aligned(bid_input.max_price):
        errors.append(f"Max price must be a multiple of the tick spacing {config.tick_spacing}")
    if bid_input.amount <= 0:
        errors.append("Bid amount must be greater than 0")

    ended = state.is_ended or state.current_block >= config.end_block
    if ended:
        errors.append("Auction has ended")
    elif state.emission_remaining <= 0:
        errors.append("No emission remains to be sold")

    if not bid_input.owner or not bid_input.owner.strip():
        errors.append("Bid owner must be specified")

    return errors


def submit_bid(state: SimulationState, config: AuctionConfig, bid_input: BidLike) -> SimulationState:
    """
    Submit a bid at the current block.

    Args:
        state: Current state (not modified)
        config: Auction configuration
        bid_input: BidInput or mapping with max_price, amount and owner

    Returns:
        New state containing the bid and the re-solved clearing price

    Raises:
        BidValidationError: With every reason the bid was rejected
    """
    bid_input = _coerce_bid_input(bid_input)
    errors = validate_bid(bid_input, state, config)
    if errors:
        raise BidValidationError(errors)

    new_state = state.copy()
    max_price_q96 = to_fixed(bid_input.max_price)
    amount_q96 = to_fixed(bid_input.amount)
    # Less emission ahead means each remaining block must absorb more of the bid
    effective_amount_q96 = mul_div(amount_q96, MPS_TOTAL, new_state.emission_remaining)

    bid = Bid(
        id=new_state.next_bid_id,
        max_price=bid_input.max_price,
        amount=bid_input.amount,
        owner=bid_input.owner,
        start_block=new_state.current_block,
        start_cumulative_emission=new_state.cumulative_emission,
        max_price_q96=max_price_q96,
        amount_q96=amount_q96,
        effective_amount_q96=effective_amount_q96,
    )

    _, next_active = new_state.ticks.initialize_tick_if_needed(
        config.floor_price_q96, max_price_q96, new_state.next_active_tick_price_q96
    )
    new_state.ticks.add_demand(max_price_q96, bid.id, effective_amount_q96)
    new_state.next_active_tick_price_q96 = next_active
    new_state.sum_demand_above_clearing_q96 += effective_amount_q96
    new_state.bids[bid.id] = bid
    new_state.next_bid_id += 1

    _apply_clearing(new_state, config)

    logger.info(
        "Bid %d accepted at block %d: owner=%s max_price=%s amount=%s; clearing price %s",
        bid.id, bid.start_block, bid.owner, bid.max_price, bid.amount,
        new_state.clearing_price.normalize(),
    )
    return new_state


def bid_status(bid: Bid, clearing_price_q96: int, is_ended: bool, is_graduated: bool) -> BidStatus:
    """Status of a bid relative to the clearing price and auction phase."""
    if is_ended and not is_graduated:
        return BidStatus.REFUNDED
    if bid.max_price_q96 > clearing_price_q96:
        return BidStatus.FULLY_FILLED if is_ended else BidStatus.ACTIVE
    if bid.max_price_q96 == clearing_price_q96:
        return BidStatus.PARTIALLY_FILLED
    return BidStatus.OUTBID


def advance_one_block(state: SimulationState, config: AuctionConfig) -> SimulationState:
    """Advance the auction by a single block."""
    new_state = state.copy()
    _advance_in_place(new_state, config)
    return new_state


def advance_to_block(state: SimulationState, config: AuctionConfig, target_block: int) -> SimulationState:
    """Advance block by block up to ``min(target_block, end_block)``."""
    new_state = state.copy()
    limit = min(target_block, config.end_block)
    while new_state.current_block < limit:
        _advance_in_place(new_state, config)
    return new_state


def _apply_clearing(state: SimulationState, config: AuctionConfig) -> None:
    result = find_clearing_price(state, config)
    state.clearing_price_q96 = result.clearing_price_q96
    state.sum_demand_above_clearing_q96 = result.sum_demand_above_clearing_q96
    state.next_active_tick_price_q96 = result.next_active_tick_price_q96


def _advance_in_place(state: SimulationState, config: AuctionConfig) -> None:
    if state.current_block >= config.end_block:
        state.is_ended = True
        return

    new_block = state.current_block + 1
    new_cumulative = cumulative_emission(config, new_block)
    emission_delta = new_cumulative - state.cumulative_emission

    _apply_clearing(state, config)
    clearing_price_q96 = state.clearing_price_q96
    dist = distribute(state, config, emission_delta, clearing_price_q96)

    max_cleared = config.total_supply * Q96 * MPS_TOTAL
    state.currency_raised_q96_x7 += dist.currency_raised_q96_x7
    state.total_cleared_q96_x7 = min(state.total_cleared_q96_x7 + dist.tokens_cleared_q96_x7, max_cleared)

    was_graduated = state.is_graduated
    state.is_graduated = (
        state.currency_raised_q96_x7 >= config.required_currency_raised_q96 * MPS_TOTAL
    )
    state.is_ended = new_block >= config.end_block

    previous = state.checkpoints[state.current_block]
    at_clearing = dist.currency_at_clearing_price_q96_x7
    if previous.clearing_price_q96 == clearing_price_q96:
        cumulative_at_clearing = previous.cumulative_currency_at_clearing_price_q96_x7 + at_clearing
    else:
        cumulative_at_clearing = at_clearing

    state.checkpoints[new_block] = Checkpoint(
        block_number=new_block,
        clearing_price_q96=clearing_price_q96,
        cumulative_emission=new_cumulative,
        cumulative_emission_per_price=(
            previous.cumulative_emission_per_price
            + (emission_delta << (2 * RESOLUTION)) // clearing_price_q96
        ),
        currency_raised_q96_x7=state.currency_raised_q96_x7,
        total_cleared_q96_x7=state.total_cleared_q96_x7,
        currency_at_clearing_price_q96_x7=at_clearing,
        cumulative_currency_at_clearing_price_q96_x7=cumulative_at_clearing,
    )
    state.current_block = new_block
    state.cumulative_emission = new_cumulative

    for bid in state.bids.values():
        bid.status = bid_status(bid, clearing_price_q96, state.is_ended, state.is_graduated)
        if bid.max_price_q96 < clearing_price_q96 and bid.outbid_checkpoint_block is None:
            bid.outbid_checkpoint_block = new_block
        if bid.max_price_q96 > clearing_price_q96:
            bid.last_fully_filled_checkpoint_block = new_block

    logger.debug(
        "Block %d: clearing=%s emission=%d/%d raised=%s cleared=%s",
        new_block, clearing_price_q96, new_cumulative, MPS_TOTAL,
        state.currency_raised_q96_x7, state.total_cleared_q96_x7,
    )
    if state.is_graduated and not was_graduated:
        logger.info("Auction graduated at block %d (raised %s)", new_block, state.currency_raised.normalize())
    if state.is_ended:
        logger.info(
            "Auction ended at block %d: clearing price %s, graduated=%s",
            new_block, state.clearing_price.normalize(), state.is_graduated,
        )
