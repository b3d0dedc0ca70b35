"""
Pytest configuration for rule codec tests.

The sample policy declares one calling function (transfer), three foreign
calls (bool, address and uint256 results), two trackers and one mapped
tracker. Symbol indices:

    arguments        to=0 (address), value=1 (uint256)
    foreign calls    IsAllowed=0, Owner=1, Score=2
    trackers         TotalVolume=0 (uint256), Status=1 (string)
    mapped trackers  Balances=2 (address -> uint256)
"""

from __future__ import annotations

import copy
from pathlib import Path

import pytest
import yaml

from rcl.codec.symbols import SymbolContext, SymbolRegistry
from rcl.config.config import Config
from rcl.policy.document import PolicyDocument, build_registry, parse_policy
from rcl.utils import logger as logger_module


FC_ADDRESS = "0x1234567890123456789012345678901234567890"
HOLDER = "0x00000000000000000000000000000000000000aA"

SAMPLE_POLICY = {
    "Policy": "Transfer policy",
    "Description": "Limits token transfers",
    "PolicyType": "open",
    "CallingFunctions": [
        {
            "name": "transfer",
            "functionSignature": "transfer(address,uint256)",
            "encodedValues": "address to, uint256 value",
        },
    ],
    "ForeignCalls": [
        {
            "name": "IsAllowed",
            "function": "isAllowed(address)",
            "address": FC_ADDRESS,
            "returnType": "bool",
            "valuesToPass": "to",
            "mappedTrackerKeyValues": "",
            "callingFunction": "transfer",
        },
        {
            "name": "Owner",
            "function": "owner()",
            "address": FC_ADDRESS,
            "returnType": "address",
            "valuesToPass": "",
            "mappedTrackerKeyValues": "",
            "callingFunction": "transfer",
        },
        {
            "name": "Score",
            "function": "score(address,uint256)",
            "address": FC_ADDRESS,
            "returnType": "uint256",
            "valuesToPass": "to, TR:TotalVolume",
            "mappedTrackerKeyValues": "",
            "callingFunction": "transfer(address,uint256)",
        },
    ],
    "Trackers": [
        {"name": "TotalVolume", "type": "uint256", "initialValue": "0"},
        {"name": "Status", "type": "string", "initialValue": "open"},
    ],
    "MappedTrackers": [
        {
            "name": "Balances",
            "keyType": "address",
            "valueType": "uint256",
            "initialKeys": [HOLDER],
            "initialValues": ["100"],
        },
    ],
    "Rules": [
        {
            "Name": "Limit",
            "Description": "Large transfers need an allowed receiver",
            "condition": "value > 100 AND FC:IsAllowed == true",
            "positiveEffects": ['revert("Transfer too large")'],
            "negativeEffects": ['emit "Transfer checked", value'],
            "callingFunction": "transfer",
        },
        {
            "Name": "Volume",
            "Description": "Track volume of funded transfers",
            "condition": "(TR:Balances(to) >= value AND FC:Score > 10) OR GV:MSG_SENDER == FC:Owner",
            "positiveEffects": ["TRU:TotalVolume += value", "TRU:Balances(to) -= value"],
            "negativeEffects": [],
            "callingFunction": "transfer",
        },
        {
            "Name": "Open",
            "Description": "Only while the policy is open",
            "condition": 'TR:Status == "open"',
            "positiveEffects": ['emit "Status", "open"'],
            "negativeEffects": ["revert('closed')"],
            "callingFunction": "transfer",
        },
    ],
}


@pytest.fixture
def policy_data() -> dict:
    """A fresh copy of the sample policy mapping."""
    return copy.deepcopy(SAMPLE_POLICY)


@pytest.fixture
def policy_document(policy_data) -> PolicyDocument:
    """Sample policy parsed into a document."""
    return parse_policy(policy_data, source="sample")


@pytest.fixture
def registry(policy_document) -> SymbolRegistry:
    """Symbol registry of the sample policy."""
    return build_registry(policy_document)


@pytest.fixture
def context(registry) -> SymbolContext:
    """Symbols visible to rules on transfer."""
    return registry.context_for("transfer")


@pytest.fixture
def policy_file(tmp_path, policy_data) -> Path:
    """Sample policy written as YAML."""
    path = tmp_path / "policy.yaml"
    path.write_text(yaml.safe_dump(policy_data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def clean_singletons(monkeypatch, tmp_path):
    """Reset the config and logger singletons around a test.

    Runs from tmp_path so no developer .env is picked up.
    """
    for name in ("RCL_LOG_LEVEL", "RCL_LOG_DIR", "RCL_LOG_TO_FILE", "RCL_LOG_ERRORS_SEPARATELY",
                 "RCL_OUTPUT_INDENT", "RCL_NO_COLOR", "NO_COLOR", "RCL_POLICY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    Config._instance = None
    logger_module.RclLogger._instance = None
    logger_module.RclLogger._initialized = False
    logger_module._logger = None
    yield
    Config._instance = None
    logger_module.RclLogger._instance = None
    logger_module.RclLogger._initialized = False
    logger_module._logger = None
