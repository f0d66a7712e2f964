import pytest

from patir import Command, Status


class WarningCommand(Command):
    def run(self, context=None):
        self.status = Status.WARNING
        return self.status


class ErrorCommand(Command):
    def run(self, context=None):
        self.status = Status.ERROR
        return self.status


@pytest.fixture
def void():
    return Command("void")


@pytest.fixture
def warning():
    return WarningCommand("warning")


@pytest.fixture
def error():
    return ErrorCommand("error")
