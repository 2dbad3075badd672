"""
Cluster access tests: attribute gating and parsing of the cluster manager's tools.
"""

import pytest

from mdsha.cluster import crm as crm_module
from mdsha.cluster.attribute import MetadataVersionAttribute, PromotionScore
from mdsha.cluster.crm import CrmClient
from mdsha.shell import CommandResult

from conftest import FakeCrm


def test_attribute_defaults_to_zero():
    assert MetadataVersionAttribute(FakeCrm(), "v").get() == 0


def test_attribute_set_writes_new_value():
    crm = FakeCrm()
    attribute = MetadataVersionAttribute(crm, "v")

    assert attribute.set(12)
    assert attribute.get() == 12
    assert crm.attribute_writes == [("v", 12)]


def test_attribute_set_skips_unchanged_value():
    crm = FakeCrm(cluster_version=12)
    assert not MetadataVersionAttribute(crm, "v").set(12)
    assert crm.attribute_writes == []


def test_attribute_set_waits_for_idle_cluster():
    crm = FakeCrm()
    crm.pending = True
    attribute = MetadataVersionAttribute(crm, "v")

    assert not attribute.set(12)
    assert crm.attribute_writes == []

    crm.pending = False
    assert attribute.set(12)


def test_score_set_only_on_change():
    crm = FakeCrm()
    score = PromotionScore(crm)

    assert score.set(900)
    assert not score.set(900)
    assert score.set(0)
    assert crm.score_writes == [900, 0]


class ScriptedCommands:
    """Stands in for run_command, answering by program name."""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []
        self.timeouts = []

    def __call__(self, args, input=None, timeout=None):
        self.calls.append(args)
        self.timeouts.append(timeout)
        answer = self.answers.get(args[0])
        if callable(answer):
            return answer(args)
        if answer is None:
            return CommandResult(args, 1, stderr="not found")
        return answer


@pytest.fixture
def commands(monkeypatch):
    def install(**answers):
        scripted = ScriptedCommands(answers)
        monkeypatch.setattr(crm_module, "run_command", scripted)
        return scripted
    return install


def test_get_attribute_parses_value(commands):
    scripted = commands(crm_attribute=CommandResult([], 0, stdout="57\n"))

    assert CrmClient("mds").get_attribute("mds-metadata-version") == 57
    args = scripted.calls[0]
    assert "--query" in args and "crm_config" in args
    assert args[args.index("--default") + 1] == "0"


def test_get_attribute_falls_back_to_default(commands):
    commands(crm_attribute=CommandResult([], 0, stdout="garbage\n"))
    assert CrmClient("mds").get_attribute("x", default=0) == 0

    commands()
    assert CrmClient("mds").get_attribute("x", default=0) == 0


def test_set_attribute_uses_update(commands):
    scripted = commands(crm_attribute=CommandResult([], 0))

    assert CrmClient("mds").set_attribute("x", 9)
    assert scripted.calls[0][-2:] == ["--update", "9"]


def test_score_uses_forever_lifetime(commands):
    scripted = commands(crm_master=CommandResult([], 0, stdout="900\n"))
    client = CrmClient("mds")

    assert client.get_score() == 900
    assert client.set_score(1000)
    assert all(call[1:3] == ["-l", "forever"] for call in scripted.calls)


@pytest.mark.parametrize("role", ["Master", "Promoted"])
def test_leader_lookup(commands, role):
    commands(
        crm_resource=CommandResult([], 0, stdout=f"resource mds is running on: node2 {role}\n"),
        crm_node=CommandResult([], 0, stdout="node2\n"),
    )
    client = CrmClient("mds")

    assert client.leader_node() == "node2"
    assert client.is_local_leader()


def test_leader_lookup_uses_short_timeout(commands):
    scripted = commands(
        crm_resource=CommandResult([], 0, stdout="resource mds is running on: node1 Promoted\n"),
        crm_node=CommandResult([], 0, stdout="node1\n"),
        crm_attribute=CommandResult([], 0, stdout="3\n"),
    )
    client = CrmClient("mds", timeout=60.0, lookup_timeout=2.5)

    assert client.is_local_leader()
    client.get_attribute("x")
    assert scripted.timeouts == [2.5, 2.5, 60.0]


@pytest.mark.parametrize("role", ["", " Slave", " Unpromoted"])
def test_no_leader(commands, role):
    commands(
        crm_resource=CommandResult([], 0, stdout=f"resource mds is running on: node2{role}\n"),
        crm_node=CommandResult([], 0, stdout="node2\n"),
    )
    client = CrmClient("mds")

    assert client.leader_node() is None
    assert not client.is_local_leader()


def crmadmin(state):
    def answer(args):
        if "--dc_lookup" in args:
            return CommandResult(args, 0, stdout="Designated Controller is: node1\n")
        assert args[-1] == "node1"
        return CommandResult(args, 0, stdout=f"Status of crmd@node1: {state} (ok)\n")
    return answer


def test_transition_pending(commands):
    commands(crmadmin=crmadmin("S_IDLE"))
    assert not CrmClient("mds").transition_pending()

    commands(crmadmin=crmadmin("S_TRANSITION_ENGINE"))
    assert CrmClient("mds").transition_pending()


def test_unreachable_controller_counts_as_pending(commands):
    commands()
    assert CrmClient("mds").transition_pending()


def test_cleanup_errors(commands):
    scripted = commands(crm_resource=CommandResult([], 0))

    assert CrmClient("mds").cleanup_errors()
    assert scripted.calls[0] == ["crm_resource", "--cleanup", "--resource", "mds"]
