"""Tests for markdowntailor/core/repositories.py."""
import json
import unittest

from markdowntailor.core.errors import StorageUnavailable, ValidationError
from markdowntailor.core.repositories import RESUME_VERSIONS, RESUMES, ResumeRepository, ResumeVersionRepository
from markdowntailor.core.templates import ResumeStyles, get_template
from tests.helpers import CountingStore, FailingStore


def make_repos(store=None):
    store = store or CountingStore()
    versions = ResumeVersionRepository(store)
    return store, ResumeRepository(store, versions), versions


class TestResumeCreate(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store, self.resumes, self.versions = make_repos()

    async def test_create_assigns_id_and_timestamps(self):
        resume = await self.resumes.create(title="Resume A", markdown="# A", css="", styles="{}")
        self.assertTrue(resume.id)
        self.assertEqual(resume.created_at, resume.updated_at)

    async def test_find_by_id_returns_same_content(self):
        created = await self.resumes.create(title="Resume A", markdown="# A", css="h1 {}", styles='{"font_size": 11}')
        found = await self.resumes.find_by_id(created.id)
        self.assertEqual(
            (found.title, found.markdown, found.css, found.styles),
            ("Resume A", "# A", "h1 {}", '{"font_size": 11}'),
        )
        self.assertEqual(found.created_at, created.created_at)

    async def test_ids_are_unique(self):
        a = await self.resumes.create(title="A")
        b = await self.resumes.create(title="B")
        self.assertNotEqual(a.id, b.id)

    async def test_empty_title_rejected_before_io(self):
        for title in ("", "   ", None):
            with self.assertRaises(ValidationError):
                await self.resumes.create(title=title)
        self.assertEqual(self.store.writes, 0)

    async def test_oversized_content_rejected_before_io(self):
        with self.assertRaises(ValidationError):
            await self.resumes.create(title="A", markdown="x" * 50001)
        with self.assertRaises(ValidationError):
            await self.resumes.create(title="A", css="x" * 20001)
        self.assertEqual(self.store.writes, 0)
        resume = await self.resumes.create(title="A", markdown="x" * 50000, css="x" * 20000)
        self.assertEqual(len(resume.markdown), 50000)

    async def test_find_missing_returns_none(self):
        self.assertIsNone(await self.resumes.find_by_id("missing"))

    async def test_find_all(self):
        a = await self.resumes.create(title="A")
        b = await self.resumes.create(title="B")
        self.assertEqual({r.id for r in await self.resumes.find_all()}, {a.id, b.id})


class TestResumeUpdate(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store, self.resumes, self.versions = make_repos()

    async def test_update_merges_and_bumps_updated_at(self):
        created = await self.resumes.create(title="Resume A", markdown="# A", css="", styles="{}")
        updated = await self.resumes.update(created.id, markdown="# A v2")
        self.assertEqual(updated.markdown, "# A v2")
        self.assertEqual(updated.title, "Resume A")
        self.assertGreater(updated.updated_at, created.created_at)
        self.assertEqual(updated.created_at, created.created_at)
        self.assertEqual((await self.resumes.find_by_id(created.id)).markdown, "# A v2")

    async def test_consecutive_updates_strictly_increase_updated_at(self):
        resume = await self.resumes.create(title="A")
        first = await self.resumes.update(resume.id, css="a {}")
        second = await self.resumes.update(resume.id, css="b {}")
        self.assertGreater(second.updated_at, first.updated_at)

    async def test_update_missing_is_noop(self):
        await self.resumes.create(title="A")
        writes = self.store.writes
        before = len(await self.store.list_all(RESUMES))
        self.assertIsNone(await self.resumes.update("missing", markdown="x"))
        self.assertEqual(len(await self.store.list_all(RESUMES)), before)
        self.assertEqual(self.store.writes, writes)

    async def test_update_rejects_unknown_fields(self):
        resume = await self.resumes.create(title="A")
        with self.assertRaises(ValidationError):
            await self.resumes.update(resume.id, id="other")
        with self.assertRaises(ValidationError):
            await self.resumes.update(resume.id, created_at="2020-01-01")

    async def test_update_rejects_non_string_values(self):
        resume = await self.resumes.create(title="A")
        with self.assertRaises(ValidationError):
            await self.resumes.update(resume.id, styles={"font_size": 10})

    async def test_update_rejects_oversized_content(self):
        resume = await self.resumes.create(title="A", css="p {}")
        writes = self.store.writes
        with self.assertRaises(ValidationError):
            await self.resumes.update(resume.id, css="x" * 20001)
        self.assertEqual(self.store.writes, writes)
        self.assertEqual((await self.resumes.find_by_id(resume.id)).css, "p {}")


class TestResumeCopies(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store, self.resumes, self.versions = make_repos()

    async def test_create_from_template(self):
        template = get_template("agile-archer")
        resume = await self.resumes.create_from_template(template)
        self.assertEqual(resume.title, "Agile Archer (Copy)")
        self.assertEqual(resume.markdown, template.markdown)
        self.assertEqual(resume.css, template.css)
        self.assertEqual(ResumeStyles.parse(resume.styles), template.styles)

    async def test_duplicate(self):
        original = await self.resumes.create(title="Mine", markdown="# Me", styles='{"font_family": "Arial"}')
        copy = await self.resumes.duplicate(original.id)
        self.assertNotEqual(copy.id, original.id)
        self.assertEqual(copy.title, "Mine (Copy)")
        self.assertEqual((copy.markdown, copy.styles), (original.markdown, original.styles))

    async def test_duplicate_missing(self):
        self.assertIsNone(await self.resumes.duplicate("missing"))


class TestVersions(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store, self.resumes, self.versions = make_repos()

    async def test_latest_version_is_zero_without_versions(self):
        self.assertEqual(await self.versions.get_latest_version("r1"), 0)

    async def test_latest_version_ignores_creation_order(self):
        await self.versions.create(resume_id="r1", version=5, title="t")
        await self.versions.create(resume_id="r1", version=2, title="t")
        await self.versions.create(resume_id="r2", version=9, title="t")
        self.assertEqual(await self.versions.get_latest_version("r1"), 5)

    async def test_find_all_by_resume_id_newest_first(self):
        for n in (1, 3, 2):
            await self.versions.create(resume_id="r1", version=n, title=f"v{n}")
        self.assertEqual([v.version for v in await self.versions.find_all_by_resume_id("r1")], [3, 2, 1])
        self.assertEqual(await self.versions.find_all_by_resume_id("other"), [])

    async def test_save_and_version_numbers_are_contiguous(self):
        resume = await self.resumes.create(title="A", markdown="0")
        for n in range(1, 4):
            await self.resumes.save_and_version(resume.id, markdown=str(n))
        versions = await self.versions.find_all_by_resume_id(resume.id)
        self.assertEqual(sorted(v.version for v in versions), [1, 2, 3])
        self.assertEqual({v.version: v.markdown for v in versions}, {1: "1", 2: "2", 3: "3"})

    async def test_resume_updated_at_not_before_latest_version(self):
        resume = await self.resumes.create(title="A")
        saved = await self.resumes.save_and_version(resume.id, markdown="x")
        latest = (await self.versions.find_all_by_resume_id(resume.id))[0]
        self.assertGreaterEqual(saved.updated_at, latest.created_at)

    async def test_save_and_version_missing(self):
        self.assertIsNone(await self.resumes.save_and_version("missing", markdown="x"))
        self.assertEqual(await self.store.list_all(RESUME_VERSIONS), [])

    async def test_restore_from_version(self):
        resume = await self.resumes.create(title="A", markdown="first")
        await self.resumes.save_and_version(resume.id, markdown="first")
        await self.resumes.save_and_version(resume.id, markdown="second")
        v1 = (await self.versions.find_all_by_resume_id(resume.id))[-1]

        restored = await self.resumes.restore_from_version(v1.id)
        self.assertEqual(restored.markdown, "first")
        versions = await self.versions.find_all_by_resume_id(resume.id)
        self.assertEqual(versions[0].version, 3)
        self.assertEqual(versions[0].markdown, "first")

    async def test_restore_missing_version(self):
        self.assertIsNone(await self.resumes.restore_from_version("missing"))


class TestDelete(unittest.IsolatedAsyncioTestCase):
    async def test_delete_cascades_to_versions(self):
        store, resumes, versions = make_repos()
        keep = await resumes.create(title="Keep")
        gone = await resumes.create(title="Gone")
        await resumes.save_and_version(keep.id, markdown="k")
        await resumes.save_and_version(gone.id, markdown="g1")
        await resumes.save_and_version(gone.id, markdown="g2")

        await resumes.delete(gone.id)

        self.assertIsNone(await resumes.find_by_id(gone.id))
        self.assertEqual(await versions.find_all_by_resume_id(gone.id), [])
        self.assertEqual(len(await versions.find_all_by_resume_id(keep.id)), 1)

    async def test_delete_is_idempotent(self):
        _, resumes, versions = make_repos()
        await resumes.delete("missing")
        await versions.delete_all_by_resume_id("missing")

    async def test_cascade_failure_propagates_and_leaves_orphans(self):
        store = FailingStore(RESUME_VERSIONS)
        _, resumes, versions = make_repos(store)
        resume = await resumes.create(title="A")
        await resumes.save_and_version(resume.id, markdown="x")
        store.armed = True

        with self.assertRaises(StorageUnavailable):
            await resumes.delete(resume.id)
        self.assertIsNone(await resumes.find_by_id(resume.id))
        self.assertEqual(len(await versions.find_all_by_resume_id(resume.id)), 1)


class TestStoredShape(unittest.IsolatedAsyncioTestCase):
    async def test_records_are_json_documents(self):
        store, resumes, _ = make_repos()
        resume = await resumes.create(title="A")
        raw = await store.get(RESUMES, resume.id)
        json.dumps(raw)
        self.assertEqual(raw["id"], resume.id)
        self.assertIn("updated_at", raw)


if __name__ == "__main__":
    unittest.main()
