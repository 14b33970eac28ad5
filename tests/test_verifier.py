"""
pactcmd Command Verification Test Suite

Attack and failure scenarios for verify_command. Each test represents
a way a command could be tampered with or malformed; verification must
return ProcFail for every one of them and never raise.
"""

import json
import unittest
from dataclasses import replace
from unittest import mock

from pactcmd import (
    ApiKeyPair,
    Command,
    ContMsg,
    ExecMsg,
    PactHash,
    PPKScheme,
    ParsedCode,
    ProcFail,
    ProcSucc,
    Signer,
    UserSig,
    canonicalize,
    mk_command,
    mk_command_raw,
    mk_key_pairs,
    pact_hash,
    verify_command,
)
from pactcmd.parse import AtomExp, ListExp


ED25519_SECRET = "8693e641ae2bbe9ea802c736f42027b03f86afe63cae315e7169c9c496c17332"
ETH_SECRET = "208065a247edbe5df4d86fbdc0171303f23a76961be9f6013850dd2bdc759bbb"


def ed25519_kp():
    return mk_key_pairs([ApiKeyPair(ED25519_SECRET)])[0]


def eth_kp():
    return mk_key_pairs([ApiKeyPair(ETH_SECRET, scheme=PPKScheme.ETH)])[0]


def payload_dict(code="(somePactFunction)", signers=None, nonce="nonce"):
    return {
        "payload": {"exec": {"code": code, "data": None}},
        "nonce": nonce,
        "meta": None,
        "signers": [s.to_dict() for s in (signers or [])],
    }


class TestVerifySuccess(unittest.TestCase):

    def setUp(self):
        self.kps = [eth_kp(), ed25519_kp()]

    def test_multi_scheme_command_verifies(self):
        """ETH and ED25519 signatures coexist in one command."""
        cmd = mk_command(self.kps, None, "nonce-1", ExecMsg("(+ 1 2)", {"k": 1}))
        result = verify_command(cmd)

        self.assertIsInstance(result, ProcSucc)
        self.assertTrue(result.is_success())

    def test_success_preserves_hash_and_sigs(self):
        cmd = mk_command(self.kps, None, "nonce-1", ExecMsg("(+ 1 2)"))
        verified = verify_command(cmd).command

        self.assertEqual(verified.hash, cmd.hash)
        self.assertEqual(verified.sigs, cmd.sigs)
        self.assertEqual(verified.payload.nonce, "nonce-1")
        self.assertEqual(
            verified.payload.signers,
            [Signer.from_key_pair(kp) for kp in self.kps]
        )

    def test_success_carries_parsed_code(self):
        cmd = mk_command(self.kps, None, "n", ExecMsg("(somePactFunction)"))
        code = verify_command(cmd).command.payload.rpc.code

        self.assertIsInstance(code, ParsedCode)
        self.assertEqual(code.code, "(somePactFunction)")
        self.assertEqual(len(code.exps), 1)
        self.assertIsInstance(code.exps[0], ListExp)
        self.assertEqual(code.exps[0].items[0], AtomExp(None, "somePactFunction"))

    def test_continuation_needs_no_code(self):
        cmd = mk_command(self.kps, None, "n", ContMsg(tx_id=7, step=1, rollback=False))
        result = verify_command(cmd)

        self.assertIsInstance(result, ProcSucc)
        self.assertEqual(result.command.payload.rpc, ContMsg(7, 1, False, None))

    def test_unsigned_command_with_no_signers(self):
        cmd = mk_command([], None, "n", ExecMsg("(read-keyset 'ks)"))
        self.assertIsInstance(verify_command(cmd), ProcSucc)

    def test_meta_decoder_applied(self):
        cmd = mk_command(self.kps, {"chain": "0"}, "n", ExecMsg("(f)"))
        result = verify_command(cmd, meta_decoder=lambda m: m["chain"])
        self.assertEqual(result.command.payload.meta, "0")

    def test_wire_round_trip_verifies(self):
        cmd = mk_command(self.kps, None, "n", ExecMsg("(f)"))
        received = Command.from_json(cmd.to_json())

        self.assertEqual(received, cmd)
        self.assertIsInstance(verify_command(received), ProcSucc)


class TestTamperingAttacks(unittest.TestCase):
    """
    Attack Vector: Modify the command after it was signed.

    Defense: hash binding of the payload bytes + signatures over the hash.
    """

    def setUp(self):
        self.kps = [eth_kp(), ed25519_kp()]
        self.cmd = mk_command(self.kps, None, "nonce", ExecMsg("(transfer 'a 'b 1.0)"))

    def test_modified_payload_detected(self):
        tampered = self.cmd.payload.replace(b"1.0", b"9.0")
        result = verify_command(replace(self.cmd, payload=tampered))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Hash mismatch", result.reason)

    def test_rehashed_payload_fails_signatures(self):
        """Recomputing the hash does not help without the private keys."""
        tampered = self.cmd.payload.replace(b"1.0", b"9.0")
        result = verify_command(replace(self.cmd, payload=tampered, hash=pact_hash(tampered)))

        self.assertIsInstance(result, ProcFail)
        self.assertNotIn("Hash mismatch", result.reason)
        self.assertIn("Invalid sig at position 0", result.reason)
        self.assertIn("Invalid sig at position 1", result.reason)

    def test_substituted_signer_list_fails(self):
        """Changing declared signers changes the hash and breaks every signature."""
        other = mk_key_pairs([ApiKeyPair("11" * 32)])[0]
        signers = [Signer.from_key_pair(self.kps[0]), Signer.from_key_pair(other)]
        raw = canonicalize(payload_dict("(transfer 'a 'b 1.0)", signers))
        forged = Command(raw, self.cmd.sigs, pact_hash(raw))

        self.assertIsInstance(verify_command(forged), ProcFail)

    def test_sig_address_tamper_detected(self):
        sig = self.cmd.sigs[0]
        forged = replace(sig, address="9f491e44a3f87df60d6cb0eefd5a9083ae6c3f32")
        result = verify_command(replace(self.cmd, sigs=[forged, self.cmd.sigs[1]]))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("is not the ETH address of public key", result.reason)

    def test_sig_scheme_tamper_detected(self):
        sig = self.cmd.sigs[1]
        forged = replace(sig, scheme=PPKScheme.ETH)
        result = verify_command(replace(self.cmd, sigs=[self.cmd.sigs[0], forged]))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid sig at position 1", result.reason)

    def test_all_bad_signatures_reported(self):
        bad = [replace(s, sig="00" * 64) for s in self.cmd.sigs]
        result = verify_command(replace(self.cmd, sigs=bad))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("ETH signature does not verify", result.reason)
        self.assertIn("ED25519 signature does not verify", result.reason)

    def test_garbage_signature_material_does_not_raise(self):
        bad = [
            replace(self.cmd.sigs[0], pub_key="zz", sig="zz"),
            replace(self.cmd.sigs[1], sig="not hex"),
        ]
        result = verify_command(replace(self.cmd, sigs=bad))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("malformed public key", result.reason)
        self.assertIn("malformed signature", result.reason)


class TestMalformedPayloads(unittest.TestCase):
    """Structural problems are all reported in one diagnostic."""

    def _command(self, raw: bytes, kps=()):
        return mk_command_raw(list(kps), raw)

    def test_invalid_json(self):
        result = verify_command(self._command(b"{not json"))

        self.assertIsInstance(result, ProcFail)
        self.assertTrue(result.reason.startswith("Invalid command: Invalid payload JSON"))

    def test_non_object_payload(self):
        result = verify_command(self._command(b"[1,2,3]"))
        self.assertIn("expected a JSON object", result.reason)

    def test_code_parse_error(self):
        result = verify_command(self._command(canonicalize(payload_dict("(unbalanced"))))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid code", result.reason)

    def test_decode_and_parse_errors_reported_together(self):
        d = payload_dict("(unbalanced")
        del d["nonce"]
        result = verify_command(self._command(canonicalize(d)))

        self.assertIn("'nonce' must be text", result.reason)
        self.assertIn("Invalid code", result.reason)

    def test_diagnostic_order_decode_hash_signature(self):
        kp = ed25519_kp()
        d = payload_dict("(unbalanced", [Signer.from_key_pair(kp)])
        cmd = self._command(canonicalize(d), [kp])
        bad = replace(cmd, hash=PactHash(b"\x00" * 64))
        reason = verify_command(bad).reason

        decode_at = reason.index("Invalid code")
        hash_at = reason.index("Hash mismatch")
        sig_at = reason.index("Invalid sig at position 0")
        self.assertLess(decode_at, hash_at)
        self.assertLess(hash_at, sig_at)

    def test_unknown_rpc(self):
        d = payload_dict()
        d["payload"] = {"deploy": {}}
        result = verify_command(self._command(canonicalize(d)))
        self.assertIn("unknown RPC 'deploy'", result.reason)

    def test_missing_signers(self):
        d = payload_dict()
        del d["signers"]
        result = verify_command(self._command(canonicalize(d)))
        self.assertIn("'signers' must be a list", result.reason)

    def test_unknown_signer_scheme(self):
        d = payload_dict()
        d["signers"] = [{"scheme": "RSA", "pubKey": "00", "addr": "00"}]
        result = verify_command(self._command(canonicalize(d)))
        self.assertIn("unknown scheme 'RSA'", result.reason)

    def test_meta_decoder_failure(self):
        raw = canonicalize(payload_dict())
        result = verify_command(self._command(raw), meta_decoder=lambda m: m["chain"])

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid payload meta", result.reason)

    def test_meta_decoder_attribute_error(self):
        raw = canonicalize(payload_dict())
        result = verify_command(self._command(raw), meta_decoder=lambda m: m.chain)

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid payload meta: AttributeError", result.reason)

    def test_meta_decoder_index_error(self):
        d = payload_dict()
        d["meta"] = []
        result = verify_command(self._command(canonicalize(d)), meta_decoder=lambda m: m[0])

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid payload meta: IndexError", result.reason)

    def test_deeply_nested_meta_rejected(self):
        depth = 100000
        raw = (
            b'{"meta":' + b"[" * depth + b"]" * depth
            + b',"nonce":"n","payload":{"exec":{"code":"(f)","data":null}},"signers":[]}'
        )
        result = verify_command(self._command(raw))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid payload JSON: nesting deeper than", result.reason)

    def test_nesting_within_limit_accepted(self):
        d = payload_dict()
        d["meta"] = json.loads("[" * 100 + "]" * 100)
        result = verify_command(self._command(canonicalize(d)))

        self.assertIsInstance(result, ProcSucc)

    def test_brackets_inside_strings_not_counted(self):
        d = payload_dict()
        d["meta"] = {"note": "[[[{{{\\\"[[["}
        with mock.patch("pactcmd.config.MAX_JSON_DEPTH", 3):
            result = verify_command(self._command(canonicalize(d)))

        self.assertIsInstance(result, ProcSucc)

    def test_recursion_error_is_decode_failure(self):
        raw = canonicalize(payload_dict())
        with mock.patch("pactcmd.verifier.decode_json",
                        side_effect=RecursionError("maximum recursion depth exceeded")):
            result = verify_command(self._command(raw))

        self.assertIsInstance(result, ProcFail)
        self.assertIn("Invalid payload JSON: maximum recursion depth exceeded", result.reason)

    def test_oversized_payload_rejected(self):
        raw = canonicalize(payload_dict())
        with mock.patch("pactcmd.config.MAX_PAYLOAD_BYTES", 16):
            result = verify_command(self._command(raw))

        self.assertIsInstance(result, ProcFail)
        self.assertIn(f"input is {len(raw)} bytes, limit is 16", result.reason)

    def test_signer_address_defaults_to_pub_key(self):
        kp = ed25519_kp()
        signer = Signer.from_key_pair(kp)
        d = payload_dict()
        d["signers"] = [{"pubKey": signer.pub_key}]
        cmd = self._command(canonicalize(d), [kp])

        result = verify_command(cmd)
        self.assertIsInstance(result, ProcSucc)
        self.assertEqual(result.command.payload.signers, [signer])


class TestCommandWire(unittest.TestCase):

    def test_command_json_shape(self):
        cmd = mk_command([ed25519_kp()], None, "n", ExecMsg("(f)"))
        d = json.loads(cmd.to_json())

        self.assertEqual(set(d), {"cmd", "sigs", "hash"})
        self.assertEqual(d["cmd"], cmd.payload.decode("utf-8"))
        self.assertEqual(d["hash"], cmd.hash.to_hex())
        self.assertEqual(set(d["sigs"][0]), {"scheme", "pubKey", "addr", "sig"})

    def test_user_sig_without_scheme_and_addr(self):
        kp = ed25519_kp()
        cmd = mk_command([kp], None, "n", ExecMsg("(f)"))
        d = cmd.to_dict()
        for s in d["sigs"]:
            del s["scheme"]
            del s["addr"]

        received = Command.from_dict(d)
        self.assertEqual(received.sigs[0].scheme, PPKScheme.ED25519)
        self.assertIsInstance(verify_command(received), ProcSucc)

    def test_user_sig_requires_pub_key(self):
        from pactcmd import PayloadDecodeError

        with self.assertRaises(PayloadDecodeError):
            UserSig.from_dict({"sig": "00"})


if __name__ == "__main__":
    unittest.main()
