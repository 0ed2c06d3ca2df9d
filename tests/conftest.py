import fakeredis
import pytest

from custodia.custody import CustodyController
from custodia.host import LocalHost
from custodia.ledger import CustodyLock, Ledger
from custodia.notifications import EventBus
from custodia.storage.memory import InMemoryStorage
from custodia.storage.redis import RedisStorage

OWNER = "0x00000000000000000000000000000000000000a1"
ALICE = "0x00000000000000000000000000000000000000b2"
BOB = "0x00000000000000000000000000000000000000c3"


@pytest.fixture(params=["memory", "redis"])
def storage(request):
    """Runs each storage-backed test over memory and over a fake Redis server."""
    if request.param == "redis":
        storage = RedisStorage(prefix="test")
        storage._client = fakeredis.FakeAsyncRedis(
            server=fakeredis.FakeServer(), decode_responses=True
        )
        return storage
    return InMemoryStorage()


@pytest.fixture
def host():
    """Local host with a fixed clock."""
    return LocalHost(clock=lambda: 1_700_000_000)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def received(bus):
    """Events delivered to an observer, in delivery order."""
    events = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def ledger(storage, host, bus):
    return Ledger(storage, host, bus)


@pytest.fixture
def controller(storage, host, ledger):
    lock = CustodyLock(storage, retry_count=0)
    return CustodyController(OWNER, ledger, host, storage, lock=lock)
