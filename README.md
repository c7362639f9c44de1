# minicore

A small, dependency-free toolkit around a teaching operating system:

- a **file-system image builder** (`minicore.mkfs`) that lays out boot
  block, superblock, log, inode blocks, free-block bitmap and data blocks,
  and fills the root directory with the files you give it;
- the classic **userland utilities** (`cat`, `echo`, `grep`, `wc`, `ls`,
  `ln`, `mkdir`, `rm`, `kill`) working on ordinary host files;
- a **shell command parser** (`minicore.shell`) that turns a command line
  into a tree of exec, redirection, pipe, list and background commands;
- **models of kernel memory**: a three-level page table with
  copy-on-write sharing over a simulated physical memory (`minicore.vm`),
  and a first-fit free-list heap allocator (`minicore.umalloc`);
- **packed structures** for virtio queues, block requests and system
  information records (`minicore.virtio`);
- a minimal `printf` (`minicore.fmt`), C-style string helpers
  (`minicore.libc`) and a Park–Miller random number generator
  (`minicore.rand`).

## Installation

```console
pip install .
```

Python 3.10 or later is required. There are no runtime dependencies.

## Command-line tools

Every tool is installed with a `minicore-` prefix so it never shadows the
host's own commands.

### Building a file-system image

```console
minicore-mkfs fs.img README user/_cat user/_ls
```

The first argument is the image to create; each further argument is a file
to place in the root directory. A leading `user/` is dropped from the name,
and so is a leading underscore, so `user/_cat` is stored as `cat`. Any other
slash in a name is an error. The tool prints the layout it uses, how many
blocks were allocated and the sector of the bitmap block.

### Text utilities

```console
minicore-cat notes.txt
minicore-echo hello world
minicore-grep '^ab*c$' input.txt
minicore-wc notes.txt
```

`grep` understands only `^`, `.`, `*` and `$`, and prints only lines that
end in a newline. With no file arguments, `cat`, `grep` and `wc` read
standard input. `wc` prints lines, words and bytes followed by the name.

### Files and directories

```console
minicore-ls .
minicore-ln old new
minicore-mkdir build
minicore-rm build/old.o
```

`ls` prints each entry's name padded to the 14-character directory-entry
width, followed by its type (1 directory, 2 file, 3 device), inode number
and size. `rm` removes files and empty directories; both `mkdir` and `rm`
stop at the first name that fails.

### Processes

```console
minicore-kill 1234 5678
```

Each argument is read as a decimal process id, and that process is killed.

## Library use

### Formatting

```python
from minicore.fmt import format_string, printf

printf("%s has %d entries at %p\n", "root", 3, 0x1000)
text = format_string("%x%%", 255)   # "FF%"
```

The directives are `%d`, `%l`, `%x`, `%p`, `%s`, `%c` and `%%`; integers
are taken as 32-bit values, and an unknown directive is printed as it
stands. `fprintf(stream, fmt, *args)` writes to any text stream.

### String helpers

`minicore.libc` has `atoi` (leading decimal digits only, 0 if none),
`strcmp` (difference of the first differing characters) and
`gets(stream, limit)`, which reads up to `limit - 1` characters and stops
after a newline or carriage return.

### Parsing shell commands

```python
from minicore.shell import ShellSyntaxError, parse_command, split_cd, tokenize

tree = parse_command("cat < in.txt | grep x > out.txt; echo done &")
tokens = tokenize("ls >> log")      # ["ls", ">>", "log"]

try:
    parse_command("echo (")
except ShellSyntaxError as exc:
    print("bad command:", exc)
```

The tree is built from `ExecCmd`, `RedirCmd` (with a `RedirMode` of
`READ`, `TRUNCATE` or `APPEND`), `PipeCmd`, `ListCmd` and `BackCmd`. A
command may hold at most nine arguments. `split_cd` returns the directory
of a `cd` line, dropping the line's last character, and `None` for any
other line.

### Page tables

```python
from minicore.vm import PageTable, PhysicalMemory, Pte

memory = PhysicalMemory(64)
parent = PageTable(memory)
size = parent.grow(0, 8192, Pte.W)
parent.copyout(0, b"hello\0")

child = PageTable(memory)
parent.copy_into(child, size)        # writable pages are shared copy-on-write
child.copyout(0, b"HELLO\0")         # the child gets its own copy here

print(parent.copyinstr(0, 16), child.copyinstr(0, 16))   # b'hello' b'HELLO'
child.destroy(size)
parent.destroy(size)
```

Kernel invariant violations raise `VmPanic`; bad user addresses raise
`VmFault`; running out of physical pages raises `MemoryError`.

### Heap allocation

```python
from minicore.umalloc import Heap, OutOfMemory

heap = Heap(1 << 20)
block = heap.malloc(100)
heap.free(block)
```

The heap grows its break in steps of at least 64 KiB; `OutOfMemory` is
raised when the break cannot move past `limit`.

### Virtio and system-information records

```python
from minicore.virtio import DescFlags, SysInfo, VirtqDesc

desc = VirtqDesc(addr=0x8000, len=16, flags=DescFlags.NEXT, next=1)
assert VirtqDesc.unpack(desc.pack()) == desc
assert SysInfo.unpack(SysInfo(uptime=5).pack()).uptime == 5
```

`VirtqAvail`, `VirtqUsed`, `VirtqUsedElem` and `VirtioBlkReq` pack and
unpack the same way, little-endian.

### Random numbers

```python
from minicore.rand import ParkMiller

rng = ParkMiller(1)
first = rng.next()
more = [next(rng) for _ in range(3)]
```

### Small process demonstrations

`minicore.processes.pingpong(out)` passes "ping" and "pong" between two
threads over a pipe; `stressfs(directory, out)` has five workers write and
read back `stressfs0` to `stressfs4` at the same time.

## What this package does not do

- The shell module only parses: there is no interactive shell and nothing
  that runs a parsed command tree.
- There is no kernel or emulator. The page tables, physical memory and heap
  are in-memory models, and the virtio classes only pack and unpack
  records; nothing talks to a device.
- `minicore-mkfs` writes new images; there is no tool to list or extract
  the contents of an existing image.

## Running the tests

```console
pip install ".[test]"
pytest
```