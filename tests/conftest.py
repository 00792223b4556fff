import pytest
from pathlib import Path
from loguru import logger

POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>{name}</artifactId>
  <version>1.0.0</version>
{modules}</project>
"""


def write_descriptor(directory: Path, name=None, modules=()) -> Path:
    """Write a minimal pom.xml declaring ``modules`` into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    body = ""
    if modules:
        body = "  <modules>\n" + "".join(f"    <module>{m}</module>\n" for m in modules) + "  </modules>\n"
    path = directory / "pom.xml"
    path.write_text(POM_TEMPLATE.format(name=name or directory.name, modules=body), encoding="utf-8")
    return path


@pytest.fixture
def make_descriptor():
    return write_descriptor


@pytest.fixture
def abc_workspace(tmp_path):
    """
    ws/a/pom.xml     A, declares module b
    ws/a/b/pom.xml   B
    ws/c/pom.xml     C
    """
    root = tmp_path / "ws"
    write_descriptor(root / "a", "A", modules=["b"])
    write_descriptor(root / "a" / "b", "B")
    write_descriptor(root / "c", "C")
    return root


@pytest.fixture
def log_messages():
    """Messages logged through loguru while the test runs."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
