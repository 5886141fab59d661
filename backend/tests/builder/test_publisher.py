"""
Tests for the Publisher and the Gradle Builder
"""
import asyncio

import pytest

from builder.core import Builder, BuildError, Publisher, public_apk_name
from builder.core.builder import DEBUG_APK_PATH
from conftest import write_files


class TestPublicApkName:

    def test_spaces_become_underscores(self):
        assert public_apk_name("Acme App", "2.1") == "Acme_App_v2.1.apk"

    def test_unsafe_characters_are_dropped(self):
        assert public_apk_name("../My App!", "1.0/beta") == "My_App_v1.0beta.apk"

    def test_suffix(self):
        assert public_apk_name("Acme", "1.0", "abcd1234") == "Acme_v1.0_abcd1234.apk"


class TestPublisher:
    """Moving APKs into the public directory"""

    def test_publish_moves_apk_and_builds_url(self, temp_dir):
        apk = temp_dir / "work" / "app-debug.apk"
        write_files(temp_dir, {"work/app-debug.apk": "APK"})
        publisher = Publisher(temp_dir / "public", "/download")

        artifact = publisher.publish(apk, "Acme App", "2.1", "f" * 32, "https://builder.example.com/")

        assert artifact.file_name == "Acme_App_v2.1.apk"
        assert artifact.download_url == "https://builder.example.com/download/Acme_App_v2.1.apk"
        assert artifact.path.read_text() == "APK"
        assert not apk.exists()

    def test_name_collision_appends_build_id(self, temp_dir):
        publisher = Publisher(temp_dir / "public")
        write_files(temp_dir, {"a.apk": "first", "b.apk": "second", "c.apk": "third"})

        first = publisher.publish(temp_dir / "a.apk", "Acme", "1.0", "1111111122222222", "http://h")
        second = publisher.publish(temp_dir / "b.apk", "Acme", "1.0", "3333333344444444", "http://h")
        third = publisher.publish(temp_dir / "c.apk", "Acme", "1.0", "3333333355555555", "http://h")

        assert first.file_name == "Acme_v1.0.apk"
        assert second.file_name == "Acme_v1.0_33333333.apk"
        assert third.file_name == "Acme_v1.0_3333333355555555.apk"
        assert first.path.read_text() == "first"
        assert second.path.read_text() == "second"

    def test_failed_move_releases_reserved_name(self, temp_dir):
        publisher = Publisher(temp_dir / "public")

        with pytest.raises(OSError):
            publisher.publish(temp_dir / "missing.apk", "Acme", "1.0", "abc", "http://h")

        assert list((temp_dir / "public").iterdir()) == []


class TestBuilder:
    """Gradle invocation and APK verification"""

    def make_builder(self, android_dir, produce_apk=True):
        calls = []

        async def run(command, args, cwd):
            calls.append((command, list(args)))
            if command == "./gradlew" and produce_apk:
                write_files(cwd, {str(DEBUG_APK_PATH): "APK"})

        return Builder(android_dir, run, lambda msg, level: None), calls

    def test_build_returns_apk(self, temp_dir):
        write_files(temp_dir, {"gradlew": "#!/bin/sh\n"})
        builder, calls = self.make_builder(temp_dir)

        apk = asyncio.run(builder.build())

        assert apk == temp_dir / DEBUG_APK_PATH
        assert calls == [("chmod", ["+x", "gradlew"]), ("./gradlew", ["assembleDebug"])]

    def test_missing_wrapper(self, temp_dir):
        builder, calls = self.make_builder(temp_dir)

        with pytest.raises(BuildError, match="gradlew script not found"):
            asyncio.run(builder.build())
        assert calls == []

    def test_successful_gradle_without_apk_is_a_failure(self, temp_dir):
        write_files(temp_dir, {"gradlew": "#!/bin/sh\n"})
        builder, _ = self.make_builder(temp_dir, produce_apk=False)

        with pytest.raises(BuildError, match="APK not found"):
            asyncio.run(builder.build())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
