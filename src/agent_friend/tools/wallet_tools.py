"""Agent-facing Ethereum wallet tool.

One tool, four actions, validated as a discriminated union on ``action``:

* ``generate_wallet`` - create a keypair held in memory for this session
* ``get_balance``     - read an address balance (labelled mock on RPC failure)
* ``send``            - transfer ETH using structured fields
* ``command``         - transfer ETH described in free text ("send 0.01 ETH from ... to ...")

Every failure is returned as text so the conversation can continue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from agent_friend.errors import CommandParseError, WalletError
from agent_friend.tools.registry import Tool, tool
from agent_friend.wallet.manager import WalletManager
from agent_friend.wallet.models import SendIntent, TransactionOutcome
from agent_friend.wallet.parser import parse_send_command

logger = logging.getLogger("agent_friend.tools.wallet")

WALLET_TOOL_NAME = "ethereum_wallet"


class GenerateWalletArgs(BaseModel):
    action: Literal["generate_wallet"]


class BalanceArgs(BaseModel):
    action: Literal["get_balance"]
    address: str


class SendArgs(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    action: Literal["send"]
    amount: str
    from_address: str
    to_address: str
    private_key: Optional[str] = None


class CommandArgs(BaseModel):
    action: Literal["command"]
    command: str


WalletArgs = Annotated[
    Union[GenerateWalletArgs, BalanceArgs, SendArgs, CommandArgs],
    Field(discriminator="action"),
]

# Flat schema for the model; the union above does the real validation.
WALLET_PARAMETERS = {
    "type": "object",
    "properties": {
        "action": {
            "type": "string",
            "enum": ["generate_wallet", "get_balance", "send", "command"],
            "description": "What to do.",
        },
        "address": {
            "type": "string",
            "description": "Address to check (get_balance).",
        },
        "amount": {
            "type": "string",
            "description": "Amount of ETH to send, e.g. '0.01' (send).",
        },
        "from_address": {
            "type": "string",
            "description": "Sender address; its key must be known to this session or supplied (send).",
        },
        "to_address": {
            "type": "string",
            "description": "Recipient address (send).",
        },
        "private_key": {
            "type": "string",
            "description": "Optional sender private key, 64 hex digits (send).",
        },
        "command": {
            "type": "string",
            "description": "Free-text transfer request, e.g. 'send 0.01 ETH from 0x... to 0x...' (command).",
        },
    },
    "required": ["action"],
}


def make_wallet_tool(manager: WalletManager) -> Tool:
    """Build the wallet tool bound to *manager*."""

    async def _send(intent: SendIntent) -> str:
        outcome: TransactionOutcome = await asyncio.to_thread(manager.send, intent)
        tx_url = manager.client.chain.tx_url(outcome.tx_hash) if outcome.tx_hash else None
        return outcome.describe(tx_url)

    @tool(
        WALLET_TOOL_NAME,
        (
            "Manage Ethereum testnet wallets: generate a new wallet, check an "
            "address balance, or send ETH. Sending requires a wallet generated "
            "in this session or an explicit private key."
        ),
        WalletArgs,
        WALLET_PARAMETERS,
    )
    async def ethereum_wallet(args: WalletArgs) -> str:
        try:
            if isinstance(args, GenerateWalletArgs):
                entry = manager.generate_wallet()
                return (
                    "New wallet generated.\n"
                    f"  Address: {entry.address}\n"
                    f"  Private key: {entry.private_key}\n"
                    "The key is held in memory for this session only. Save it somewhere safe."
                )

            if isinstance(args, BalanceArgs):
                reading = await asyncio.to_thread(manager.get_balance, args.address)
                return reading.describe()

            if isinstance(args, SendArgs):
                intent = SendIntent(
                    amount=args.amount,
                    from_address=args.from_address,
                    to_address=args.to_address,
                    private_key=args.private_key or None,
                )
            else:
                intent = parse_send_command(args.command)
            return await _send(intent)
        except (WalletError, CommandParseError) as exc:
            return f"Error: {exc}"

    return ethereum_wallet
