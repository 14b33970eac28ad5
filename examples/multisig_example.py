#!/usr/bin/env python3
"""
pactcmd Example - Two-Scheme Signed Command

Builds a command signed by an ED25519 key and an ETH key, sends it
through its JSON wire form, verifies it, then shows what happens when
an attacker drops one signature.

Run with: python examples/multisig_example.py
"""

import json
from dataclasses import replace

from pactcmd import (
    ApiKeyPair,
    Command,
    CommandError,
    CommandSuccess,
    ExecMsg,
    PPKScheme,
    cmd_to_request_key,
    mk_command,
    mk_key_pairs,
    verify_command,
)
from pactcmd.config import configure_logging_from_env


def main():
    configure_logging_from_env()

    key_pairs = mk_key_pairs([
        ApiKeyPair("8693e641ae2bbe9ea802c736f42027b03f86afe63cae315e7169c9c496c17332"),
        ApiKeyPair(
            "208065a247edbe5df4d86fbdc0171303f23a76961be9f6013850dd2bdc759bbb",
            address="0bed7abd61247635c1973eb38474a2516ed1d884",
            scheme=PPKScheme.ETH
        ),
    ])

    cmd = mk_command(
        key_pairs,
        meta={"chainId": "0"},
        nonce="2026-10-18T00:00:00Z",
        rpc=ExecMsg('(coin.transfer "alice" "bob" 1.0)', {"memo": "rent"})
    )
    wire = cmd.to_json()
    print(f"Request key: {cmd_to_request_key(cmd)}")

    received = Command.from_json(wire)
    result = verify_command(received)
    if result.is_success():
        code = result.command.payload.rpc.code
        print(json.dumps(CommandSuccess(f"{len(code.exps)} expression(s)").to_dict()))

    stripped = replace(received, sigs=received.sigs[:1])
    result = verify_command(stripped)
    if not result.is_success():
        print(json.dumps(CommandError("Command rejected", result.reason).to_dict(), indent=2))


if __name__ == "__main__":
    main()
