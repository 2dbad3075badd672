"""
Fakes for the agent's external collaborators.
"""

import os
import sys

import pytest

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mdsha.agent import ResourceAgent
from mdsha.config import AgentConfig, Personality, ReplicaRole, ConnectionState
from mdsha.server.admin import AdminStatus
from mdsha.shell import CommandResult
from mdsha.storage.lock import AdvisoryLock
from mdsha.storage.rotation import SnapshotRotator


def ok(args=None) -> CommandResult:
    return CommandResult(args or [], 0)


def failed(text: str = "failed", args=None) -> CommandResult:
    return CommandResult(args or [], 1, stderr=text)


def status(role: str, connection: str, version: int) -> AdminStatus:
    return AdminStatus(ReplicaRole(role), ConnectionState(connection), version)


class FakeAdmin:
    """Admin client answering from a script of (status, error) pairs."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.queries = 0
        self.commands = []
        self.command_results = {}

    def query(self):
        self.queries += 1
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]

    def command(self, command):
        self.commands.append(command)
        return self.command_results.get(command, ok())


class FakeProcess:
    def __init__(self, running: bool = True):
        self.running = running
        self.transitions = {}
        self.calls = []
        self.results = {}
        self.stops_cleanly = True

    def is_running(self):
        return self.running

    def transition_in_progress(self, action):
        return self.transitions.get(action)

    def _call(self, action, personality):
        self.calls.append((action, personality))
        return self.results.get(action, ok())

    def start(self, personality: Personality):
        result = self._call("start", personality)
        if result.ok:
            self.running = True
        return result

    def stop(self, personality: Personality):
        result = self._call("stop", personality)
        if result.ok:
            self.running = False
        return result

    def kill(self, personality: Personality):
        result = self._call("kill", personality)
        if result.ok:
            self.running = False
        return result

    def wait_stopped(self, timeout):
        if self.stops_cleanly:
            self.running = False
        return self.stops_cleanly


class FakeCrm:
    def __init__(self, cluster_version: int = 0, local_leader: bool = False):
        self.attributes = {}
        self.cluster_version = cluster_version
        self.local_leader = local_leader
        self.pending = False
        self.score = None
        self.attribute_writes = []
        self.score_writes = []
        self.cleanups = 0
        self.cleanup_ok = True

    def get_attribute(self, name, default=0):
        return self.attributes.get(name, self.cluster_version or default)

    def set_attribute(self, name, value):
        self.attribute_writes.append((name, value))
        self.attributes[name] = value
        return True

    def get_score(self):
        return self.score

    def set_score(self, score):
        self.score_writes.append(score)
        self.score = score
        return True

    def is_local_leader(self):
        return self.local_leader

    def transition_pending(self):
        return self.pending

    def cleanup_errors(self):
        self.cleanups += 1
        return self.cleanup_ok


class FakeDumpReader:
    def __init__(self, version: int = 0):
        self.version = version
        self.reads = 0

    def read_version(self):
        self.reads += 1
        return self.version


class FakeCleanup:
    def __init__(self):
        self.scheduled = 0

    def schedule(self):
        self.scheduled += 1
        return True


@pytest.fixture
def config(tmp_path):
    master_cfg = tmp_path / "mfsmaster.cfg"
    exports_cfg = tmp_path / "mfsexports.cfg"
    data_path = tmp_path / "data"
    data_path.mkdir()
    master_cfg.write_text(
        "# test config\n"
        "MASTER_HOST = mfsmaster.cluster\n"
        "ADMIN_PASSWORD = secret\n"
        "MATOCL_LISTEN_PORT = 9421\n"
        f"DATA_PATH = {data_path}\n"
    )
    exports_cfg.write_text("* / rw\n")
    return AgentConfig.from_environ({
        "OCF_RESOURCE_INSTANCE": "mds:0",
        "OCF_RESKEY_master_cfg": str(master_cfg),
        "OCF_RESKEY_exports_cfg": str(exports_cfg),
    })


class AgentHarness:
    """An agent wired to fakes, plus handles on the fakes."""

    def __init__(self, config, admin, process=None, crm=None, dump=None):
        self.config = config
        self.admin = admin
        self.process = process or FakeProcess()
        self.crm = crm or FakeCrm()
        self.dump = dump or FakeDumpReader()
        self.lock = AdvisoryLock(config.lock_file)
        self.cleanup = FakeCleanup()
        self.sleeps = []
        self.output = []
        self.agent = ResourceAgent(
            config,
            admin=self.admin,
            process=self.process,
            lock=self.lock,
            crm=self.crm,
            dump_reader=self.dump,
            rotator=SnapshotRotator(config.data_path, retention_minutes=config.retention_minutes),
            cleanup=self.cleanup,
            sleep=self.sleeps.append,
            output=self.output.append,
        )

    def touch_lock(self):
        with open(self.config.lock_file, "w") as f:
            f.write("")


@pytest.fixture
def harness(config):
    def make(*answers, **kwargs):
        return AgentHarness(config, FakeAdmin(*answers), **kwargs)
    return make
