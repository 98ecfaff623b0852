"""Import a generated module and use it against the real borsh/solders stack."""

import importlib.util
import json
import sys

import pytest

pytest.importorskip("anchorpy")

from solders.instruction import Instruction  # noqa: E402
from solders.pubkey import Pubkey  # noqa: E402

from idl_bindgen.driver import generate  # noqa: E402
from idl_bindgen.errors import SchemaWarning  # noqa: E402


def load_module(path, name, monkeypatch):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    # dataclasses resolves string ClassVar annotations through sys.modules
    monkeypatch.setitem(sys.modules, name, module)
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def bindings(counter_idl_path, tmp_path, monkeypatch):
    path = generate(counter_idl_path, tmp_path / "counter_bindings.py")
    return load_module(path, "counter_bindings", monkeypatch)


def test_program_id(bindings):
    assert bindings.PROGRAM_ID == Pubkey.from_string("Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS")


def test_increment_instruction(bindings):
    counter, authority = Pubkey.new_unique(), Pubkey.new_unique()
    ix = bindings.increment(
        bindings.IncrementArgs(by=5, mode=bindings.ModeFast()),
        bindings.IncrementAccounts(counter=counter, authority=authority),
    )

    assert ix.program_id == bindings.PROGRAM_ID
    assert bytes(ix.data) == bytes.fromhex("0b12680968ae3b21") + (5).to_bytes(8, "little") + b"\x00"
    assert [(m.pubkey, m.is_signer, m.is_writable) for m in ix.accounts] == [
        (counter, False, True),
        (authority, True, False),
    ]


def test_explicit_instruction_discriminator(bindings):
    ix = bindings.set_limits(
        bindings.SetLimitsArgs(limits=[bindings.Limit(max=3, enabled=True)], owner=None),
        bindings.SetLimitsAccounts(counter=Pubkey.new_unique()),
    )
    assert bytes(ix.data)[:8] == bytes([1, 2, 3, 4, 5, 6, 7, 8])


def test_initialize_optional_arg(bindings):
    accounts = bindings.InitializeAccounts(
        counter=Pubkey.new_unique(),
        authority=Pubkey.new_unique(),
        system_program=Pubkey.default(),
    )
    with_label = bindings.initialize(bindings.InitializeArgs(start=1, label="x"), accounts)
    without = bindings.initialize(bindings.InitializeArgs(start=1, label=None), accounts)
    assert bytes(with_label.data)[:8] == bytes.fromhex("afaf6d1f0d989bed")
    assert len(with_label.data) > len(without.data)
    assert len(with_label.accounts) == 3


@pytest.mark.parametrize(
    "mode",
    [
        lambda b: None,
        lambda b: b.ModeFast(),
        lambda b: b.ModeStepped(item_0=2, item_1=b.Limit(max=9, enabled=False)),
        lambda b: b.ModeCustom(step=3, note="hi"),
    ],
)
def test_account_codec(bindings, mode):
    account = bindings.Counter(
        authority=Pubkey.new_unique(),
        count=7,
        total=2**100,
        history=[1, -2, 3, -4],
        limits=[bindings.Limit(max=10, enabled=True), bindings.Limit(max=0, enabled=False)],
        last_mode=mode(bindings),
    )
    data = bindings.encode_counter(account)

    assert data[:8] == bindings.COUNTER_DISCRIMINATOR
    assert bindings.decode_counter(data) == account


def test_account_codec_rejects_foreign_data(bindings):
    with pytest.raises(ValueError, match="too short"):
        bindings.decode_counter(b"\x00\x01")
    with pytest.raises(ValueError, match="invalid discriminator"):
        bindings.decode_counter(bytes(64))


def test_event_decoder(bindings):
    counter = Pubkey.new_unique()
    event = bindings.CounterIncremented(counter=counter, count=11)
    data = bindings.COUNTER_INCREMENTED_EVENT_DISCRIMINATOR + bindings.CounterIncremented.layout.build(
        event.to_encodable()
    )
    assert bindings.decode_counter_incremented_event(data) == event


def test_errors(bindings):
    err = bindings.from_code(6001)
    assert isinstance(err, bindings.CounterUnauthorizedError)
    assert isinstance(err, bindings.CounterError)
    assert str(err) == '6001: Signer is not the "authority"'
    assert bindings.from_code(1) is None


def test_client_builds_instructions(bindings):
    program_id = Pubkey.new_unique()
    client = bindings.CounterClient("http://127.0.0.1:8899", program_id=program_id)
    ix = client.increment(
        bindings.IncrementArgs(by=1, mode=bindings.ModeFast()),
        bindings.IncrementAccounts(counter=Pubkey.new_unique(), authority=Pubkey.new_unique()),
    )
    assert ix.program_id == program_id


def test_enum_base_is_abstract(bindings):
    with pytest.raises(TypeError):
        bindings.Mode()
    assert isinstance(bindings.ModeFast(), bindings.Mode)


def test_idl_types_keep_their_names(tmp_path, monkeypatch):
    idl = {
        "name": "vault",
        "address": "11111111111111111111111111111111",
        "instructions": [
            {
                "name": "initialize",
                "accounts": [{"name": "vault", "writable": True}],
                "args": [{"name": "args", "type": {"defined": {"name": "InitializeArgs"}}}],
            }
        ],
        "types": [
            {
                "name": "InitializeArgs",
                "type": {
                    "kind": "struct",
                    "fields": [{"name": "amount", "type": "u64"}, {"name": "tag", "type": {"defined": "Instruction"}}],
                },
            },
            {"name": "Instruction", "type": {"kind": "struct", "fields": [{"name": "op", "type": "u8"}]}},
        ],
    }
    idl_path = tmp_path / "vault.json"
    idl_path.write_text(json.dumps(idl), encoding="utf-8")
    with pytest.warns(SchemaWarning):
        path = generate(idl_path, tmp_path / "vault_bindings.py")
    m = load_module(path, "vault_bindings", monkeypatch)

    user_args = m.InitializeArgs(amount=7, tag=m.InstructionType(op=3))
    vault = Pubkey.new_unique()
    ix = m.initialize(m.InitializeIxArgs(args=user_args), m.InitializeAccounts(vault=vault))

    assert isinstance(ix, Instruction)
    assert bytes(ix.data) == bytes.fromhex("afaf6d1f0d989bed") + (7).to_bytes(8, "little") + b"\x03"
    decoded = m.InitializeIxArgs.from_decoded(m.InitializeIxArgs.layout.parse(bytes(ix.data)[8:]))
    assert decoded.args == user_args
