#!/usr/bin/python3
"""
    Runtime support for the pawk AWK interpreter:
    control flow signals, runtime errors, call frames
    and the files and pipes a program reads and writes.
"""
#
# Copyright (C) 2022 Julia Ingleby Clement
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from subprocess import Popen, PIPE
from tempfile import TemporaryFile
import subprocess
import sys
import threading
from pawk_records import RecordReader
from pawk_values import AwkArray, UNINIT_VALUE, ValueKind

ENCODING = "utf-8"
ERRORS = "surrogateescape"
# C stack reserved per Python frame when a program runs on its own thread
STACK_BYTES_PER_FRAME = 512
MAX_STACK_BYTES = 1 << 30


class AwkRuntimeError(RuntimeError):
    """Fatal error while a program runs, reported and turned into exit status 2"""
    pass


class AwkExit(Exception):
    def __init__(self, status=None):
        super().__init__(status)
        self.status = status


class AwkNext(Exception):
    pass


class AwkNextFile(Exception):
    pass


class AwkBreak(Exception):
    pass


class AwkContinue(Exception):
    pass


class AwkReturn(Exception):
    def __init__(self, value):
        super().__init__()
        self.value = value


class UntypedParam:
    """An argument that was an uninitialised variable at the call.

    Read as a scalar it is uninitialised. If the called function uses it
    as an array, the array is created and stored in the caller's variable
    too, so arrays built inside a function are seen by its caller.
    """

    __slots__ = ("container", "key")
    kind = ValueKind.UNINIT

    def __init__(self, container, key):
        self.container = container  # globals dict or a frame's locals list
        self.key = key

    def materialise(self) -> AwkArray:
        if isinstance(self.container, dict):
            current = self.container.get(self.key, UNINIT_VALUE)
        else:
            current = self.container[self.key]
        if isinstance(current, AwkArray):
            return current
        if isinstance(current, UntypedParam):
            array = current.materialise()
        elif current.kind == ValueKind.UNINIT:
            array = AwkArray()
        else:
            raise AwkRuntimeError("attempt to use a scalar as an array")
        self.container[self.key] = array
        return array


class Frame:
    """One active user function call. Parameters live in slots."""

    __slots__ = ("function", "locals")

    def __init__(self, function, slots: list):
        self.function = function
        self.locals = slots


def _exit_status(returncode: int) -> int:
    # killed by a signal: 256 + signal number
    return 256 - returncode if returncode < 0 else returncode


class FileWrapper:
    """Something a program reads from or writes to by name"""

    def __init__(self, manager, name: str, mode: str):
        self.manager: StreamManager = manager
        self.name = name
        self.mode = mode
        self.reader = None

    def open(self):
        pass

    def write(self, text: str):
        pass

    def flush(self):
        pass

    def close(self, wait: bool = True) -> int:
        return 0


class StdStreamWrapper(FileWrapper):
    """-, /dev/stdout and /dev/stderr, never really closed"""

    def __init__(self, manager, name: str, stream):
        super().__init__(manager, name, "w")
        self.stream = stream

    def write(self, text: str):
        self.stream.write(text)

    def flush(self):
        self.stream.flush()

    def close(self, wait: bool = True) -> int:
        self.stream.flush()
        return 0


class StdinWrapper(FileWrapper):
    """getline < "-" shares the interpreter's standard input reader"""

    def __init__(self, manager, name: str):
        super().__init__(manager, name, "r")

    def open(self):
        self.reader = self.manager.stdin_reader()


class FileIOWrapper(FileWrapper):
    def __init__(self, manager, name: str, mode: str):
        super().__init__(manager, name, mode)
        self.file_handle = None

    def open(self):
        if self.mode == "r":
            self.file_handle = open(self.name, "r", encoding=ENCODING, errors=ERRORS, newline="\n")
            self.reader = RecordReader(self.file_handle)
        else:
            self.file_handle = open(self.name, self.mode, encoding=ENCODING, errors=ERRORS, newline="")

    def write(self, text: str):
        self.file_handle.write(text)

    def flush(self):
        self.file_handle.flush()

    def close(self, wait: bool = True) -> int:
        self.file_handle.close()
        return 0


class PipeIOWrapper(FileWrapper):
    """A shell command; mode "|w" feeds its input, "|r" reads its output"""

    def __init__(self, manager, name: str, mode: str):
        super().__init__(manager, name, mode)
        self.popen = None
        self.captured = None

    def open(self):
        opts = {"shell": True, "encoding": ENCODING, "errors": ERRORS}
        if self.mode == "|r":
            opts["stdout"] = PIPE
        else:
            opts["stdin"] = PIPE
            opts["stdout"], self.captured = self.manager.child_stdout()
        self.manager.flush_all()
        self.popen = Popen(self.name, **opts)
        if self.mode == "|r":
            self.reader = RecordReader(self.popen.stdout)

    def write(self, text: str):
        self.popen.stdin.write(text)

    def flush(self):
        if self.popen.stdin:
            self.popen.stdin.flush()

    def close(self, wait: bool = True) -> int:
        try:
            if self.popen.stdin:
                self.popen.stdin.close()
        except BrokenPipeError:
            pass  # the command exited without reading everything
        if self.popen.stdout:
            self.popen.stdout.close()
        status = 0
        if wait:
            status = _exit_status(self.popen.wait())
        self.manager.copy_captured(self.captured)
        return status


class StreamManager:
    """Owns every file and pipe a program has open, keyed by
    the name the program used. Streams stay open until close()
    or the end of the run."""

    def __init__(self, stdin, stdout, stderr):
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.outputs = {}
        self.inputs = {}
        self._stdin_reader = None

    def stdin_reader(self) -> RecordReader:
        if self._stdin_reader is None:
            self._stdin_reader = RecordReader(sys.stdin if self.stdin is None else self.stdin)
        return self._stdin_reader

    def child_stdout(self):
        """Where a child process should write its standard output.
        Returns (stdout argument, temporary file or None)."""
        try:
            return self.stdout.fileno(), None
        except (AttributeError, OSError, ValueError):
            # not a real file, collect the output and copy it across later
            captured = TemporaryFile()
            return captured, captured

    def copy_captured(self, captured):
        if captured is None:
            return
        captured.seek(0)
        self.stdout.write(captured.read().decode(ENCODING, ERRORS))
        captured.close()

    def output(self, name: str, mode: str) -> FileWrapper:
        """The stream for print > name, >> name or | name"""
        try:
            return self.outputs[name]
        except KeyError:
            pass
        if mode == "|":
            wrapper = PipeIOWrapper(self, name, "|w")
        elif name in ("-", "/dev/stdout"):
            wrapper = StdStreamWrapper(self, name, self.stdout)
        elif name == "/dev/stderr":
            wrapper = StdStreamWrapper(self, name, self.stderr)
        else:
            wrapper = FileIOWrapper(self, name, "a" if mode == ">>" else "w")
        try:
            wrapper.open()
        except OSError as err:
            target = f'"{name}"' if mode != "|" else f'pipe "{name}"'
            raise AwkRuntimeError(f"can't redirect to {target}: {err.strerror or err}") from err
        self.outputs[name] = wrapper
        return wrapper

    def input(self, name: str, kind: str):
        """The stream for getline < name (kind "file") or name | getline
        (kind "command"), None when it can't be opened"""
        try:
            return self.inputs[name]
        except KeyError:
            pass
        if kind == "command":
            wrapper = PipeIOWrapper(self, name, "|r")
        elif name in ("-", "/dev/stdin"):
            wrapper = StdinWrapper(self, name)
        else:
            wrapper = FileIOWrapper(self, name, "r")
        try:
            wrapper.open()
        except OSError:
            return None
        self.inputs[name] = wrapper
        return wrapper

    def flush_all(self):
        for wrapper in self.outputs.values():
            wrapper.flush()
        self.stdout.flush()
        self.stderr.flush()

    def flush(self, name: str) -> int:
        wrapper = self.outputs.get(name)
        if wrapper is None:
            return -1
        wrapper.flush()
        return 0

    def close(self, name: str, wait: bool = True) -> int:
        """close(name): the command's exit status for pipes,
        0 for files and -1 when nothing of that name is open"""
        status = -1
        for streams in (self.outputs, self.inputs):
            wrapper = streams.pop(name, None)
            if wrapper is not None:
                status = wrapper.close(wait)
        return status

    def close_all(self, wait: bool = True):
        for name in list(self.outputs) + list(self.inputs):
            self.close(name, wait)
        self.stdout.flush()

    def system(self, command: str) -> int:
        self.flush_all()
        stdout, captured = self.child_stdout()
        try:
            completed = subprocess.run(command, shell=True, stdout=stdout)
        except OSError:
            return -1
        finally:
            self.copy_captured(captured)
        return _exit_status(completed.returncode)


def stack_bytes(frames: int) -> int:
    """Thread stack size for frames Python frames, whole MiB from 1 MiB
    up to MAX_STACK_BYTES"""
    mib = 1 << 20
    wanted = -(-frames * STACK_BYTES_PER_FRAME // mib) * mib
    return max(mib, min(MAX_STACK_BYTES, wanted))


def call_with_deep_stack(function, frames: int):
    """Call function() on a worker thread with room for frames Python
    frames, both in its stack and in the recursion limit. Returns the
    result or re-raises whatever function raised."""
    outcome = {}

    def target():
        try:
            outcome["result"] = function()
        except BaseException as err:
            outcome["error"] = err

    worker = threading.Thread(target=target, name="pawk", daemon=True)
    old_limit = sys.getrecursionlimit()
    old_size = threading.stack_size()
    sys.setrecursionlimit(max(old_limit, frames + 1000))
    try:
        # the stack size is taken when the thread starts
        threading.stack_size(stack_bytes(frames))
        try:
            worker.start()
        finally:
            threading.stack_size(old_size)
        worker.join()
    finally:
        sys.setrecursionlimit(old_limit)
    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]
