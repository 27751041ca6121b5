import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from app.domain.entities.deployment import Deployment, DeploymentStatus
from app.domain.exceptions import (
    DeploymentNotFoundError,
    InvalidInputError,
    NotReadyError,
)
from app.utils.streams import BufferSink


def stored(id: str, created_at: datetime = None) -> Deployment:
    if created_at is None:
        return Deployment(id=id, language="js")
    return Deployment(id=id, language="js", created_at=created_at)


class TestDeploy:
    async def test_deploy_returns_while_building(self, registry):
        deployment = await registry.deploy("js", b"print hi")

        assert deployment.status == DeploymentStatus.BUILDING
        assert registry.resolve(deployment.id) is deployment

        await registry.builder.wait(deployment.id)
        assert deployment.status == DeploymentStatus.READY

    async def test_empty_language_is_rejected(self, registry):
        with pytest.raises(InvalidInputError):
            await registry.deploy("", b"print hi")
        assert registry.list_deployments() == []

    async def test_resubmission_replaces_entry(self, registry, engine):
        engine.build_error = RuntimeError("network down")
        first = await registry.deploy("go", b"package main")
        await registry.builder.wait(first.id)
        assert first.status == DeploymentStatus.FAILED

        engine.build_error = None
        second = await registry.deploy("go", b"package main")
        await registry.builder.wait(second.id)

        assert second.id == first.id
        assert second is not first
        assert registry.resolve(first.id) is second
        assert second.status == DeploymentStatus.READY
        assert len(registry.list_deployments()) == 1

    async def test_concurrent_deploys_are_isolated(self, registry):
        a, b = await asyncio.gather(
            registry.deploy("js", b"console.log(1)"),
            registry.deploy("c", b"int main() {}"),
        )
        await asyncio.gather(registry.builder.wait(a.id), registry.builder.wait(b.id))

        assert a.id != b.id
        assert {d.id for d in registry.list_deployments()} == {a.id, b.id}
        assert a.status in (DeploymentStatus.READY, DeploymentStatus.FAILED)
        assert b.status in (DeploymentStatus.READY, DeploymentStatus.FAILED)

    def test_register_from_many_threads_loses_nothing(self, registry):
        deployments = [Deployment.create(str(i).encode(), "js") for i in range(200)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(registry.register, deployments))

        assert len(registry.list_deployments()) == 200


class TestResolution:
    def test_resolve_by_id_and_miss(self, registry):
        deployment = stored("abcd1234")
        registry.register(deployment)

        assert registry.resolve("abcd1234") is deployment
        assert registry.resolve("abcd") is None

    def test_empty_identifier_is_input_error(self, registry):
        with pytest.raises(InvalidInputError):
            registry.resolve("")
        with pytest.raises(InvalidInputError):
            registry.find("")

    def test_alias_indirection_and_rebinding(self, registry):
        d1, d2 = stored("aaaa1111"), stored("bbbb2222")
        registry.register(d1)
        registry.register(d2)

        registry.bind("foo", d1)
        assert registry.resolve("@foo") is registry.resolve(d1.id)

        alias = registry.bind("foo", d2)
        assert alias.target == d2.id
        assert registry.resolve("@foo") is registry.resolve(d2.id)
        assert len(registry.list_aliases()) == 1

    def test_unknown_alias_does_not_fall_back_to_ids(self, registry):
        registry.register(stored("@weird"))
        assert registry.resolve("@nothing") is None
        with pytest.raises(DeploymentNotFoundError):
            registry.lookup("@nothing")

    def test_bind_rejects_empty_name_and_strips_marker(self, registry):
        deployment = stored("aaaa1111")
        registry.register(deployment)

        with pytest.raises(InvalidInputError):
            registry.bind("", deployment)
        with pytest.raises(InvalidInputError):
            registry.bind("@", deployment)
        assert registry.bind("@greet", deployment).name == "greet"

    def test_find_by_prefix(self, registry):
        registry.register(stored("abcd1234"))
        registry.register(stored("abcz9999"))

        assert registry.find("abc").id in ("abcd1234", "abcz9999")
        assert registry.find("abcz").id == "abcz9999"
        assert registry.find("xyz") is None

    def test_find_tie_goes_to_newest(self, registry):
        now = datetime.now(timezone.utc)
        registry.register(stored("abcd1234", now))
        registry.register(stored("abcz9999", now - timedelta(minutes=5)))

        assert registry.find("abc").id == "abcd1234"

    def test_lookup_falls_back_to_prefix(self, registry):
        deployment = stored("abcd1234")
        registry.register(deployment)

        assert registry.lookup("abcd1234") is deployment
        assert registry.lookup("abc") is deployment
        with pytest.raises(DeploymentNotFoundError):
            registry.lookup("zzz")


class TestRun:
    async def test_run_unknown_is_not_found(self, registry):
        with pytest.raises(DeploymentNotFoundError):
            await registry.run("nope", b"", BufferSink(), BufferSink())

    async def test_run_does_not_use_prefix_fallback(self, registry):
        deployment = await registry.deploy("js", b"print hi")
        await registry.builder.wait(deployment.id)

        with pytest.raises(DeploymentNotFoundError):
            await registry.run(deployment.id[:8], b"", BufferSink(), BufferSink())

    async def test_run_before_build_completes_is_not_ready(self, registry, engine):
        engine.build_gate = asyncio.Event()
        deployment = await registry.deploy("js", b"print hi")

        with pytest.raises(NotReadyError):
            await registry.run(deployment.id, b"", BufferSink(), BufferSink())
        assert engine.runs == []

        engine.build_gate.set()
        await registry.builder.wait(deployment.id)

    async def test_end_to_end_by_id_and_alias(self, registry, engine, settings):
        engine.build_gate = asyncio.Event()
        deployment = await registry.deploy("js", b"print hi")
        described = registry.lookup(deployment.id[:12])
        assert described.status == DeploymentStatus.BUILDING
        assert described.image == ""

        engine.build_gate.set()
        await registry.builder.wait(deployment.id)
        assert deployment.status == DeploymentStatus.READY
        engine.outputs[deployment.image] = (b"hi\n", b"", 0)

        by_id = BufferSink()
        await registry.run(deployment.id, b"", by_id, BufferSink())
        assert by_id.getvalue() == b"hi\n"

        registry.bind("greet", deployment)
        by_alias = BufferSink()
        await registry.run("@greet", b"", by_alias, BufferSink())
        assert by_alias.getvalue() == by_id.getvalue()

    async def test_build_log_via_prefix(self, registry):
        deployment = await registry.deploy("go", b"package main")
        await registry.builder.wait(deployment.id)

        log = await registry.build_log(deployment.id[:10])
        assert b"building foag-" in log
