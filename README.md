# pufu

`pufu` runs small programs called *nodes*. Each node is loaded from a text
file. The runtime steps every active node in turn until none is left running.

The kinds of node, as picked by `pufu.node.detect_node_type`:

- **Assembler nodes** hold a register-machine program with sixteen registers
  (`r0` to `r15`). The instructions that run are `mov`, `add`, `sub`, `cmp`,
  `jmp`, `beq`, `bne`, `blt` and `bgt`, plus labels (`name:` or `label name`)
  and syscalls (`(write) arg` or `syscall (sleep) 100`). `mul`, `div` and
  unknown words are parsed, and they do nothing when run.
- **Scene nodes** are files that hold `_pufu::meow`, `_claw::init` or
  `_pufu::scene` in their first twenty lines. They run like assembler nodes.
- **Crystal nodes** (`*.crystal`) step a `pufu.crystal.Crystal` engine. The
  engine has sixteen two-input gate types, from `ZER` to `ONE`.

Every node carries a `HotReload` watcher for its file. `NodeSystem.check()`
counts how many running watchers saw their file change. Each such watcher
parses its file again.

## Install

```
pip install .
```

## Command line

```
pufu path/to/bootloader.pufu
```

The command works in these steps:

1. It writes its PID to `pufu.pid` in the current directory. If that file names
   a process that is still alive, it exits with status 1.
2. It starts a `Watchdog` thread and puts stdin into raw, non-blocking mode
   when stdin is a terminal. It shows a short loading animation.
3. It loads the given file as the arbiter node and runs the main loop. Each
   round, the loop reports files that changed, steps every active node, and
   sleeps 10 ms.
4. It stops on SIGINT or SIGTERM, or when no node is active any more. It then
   writes the crash-log ring buffer to `system.log`. If the loop raises an
   exception, it writes the buffer to `crash.log` instead and exits with
   status 1.

## Library use

Parsing a program:

```python
from pufu.parser import Program

program = Program()
program.parse_line("start:")
program.parse_line("mov r0 5")
program.parse_line("jmp start")
print(program.find_label("start"))  # 0
```

Evaluating a single gate:

```python
from pufu.crystal import gate_execute, gate_type

print(gate_execute(gate_type("XOR"), 1, 0))  # 1
```

Running nodes with your own arithmetic unit and syscall handler:

```python
from pufu.node import NodeSystem

class Alu:
    def add(self, a, b): return a + b
    def sub(self, a, b): return a - b
    def cmp(self, a, b): return (a > b) - (a < b)
    def execute(self, code): print(code)

def syscalls(system, node, inst):
    return False  # not handled: the instruction text goes to Alu.execute

system = NodeSystem(alu=Alu(), syscalls=syscalls)
node = system.load("program.pufu")
while system.execute(node):
    pass
print(node.registers)
```

Other modules:

- `pufu.logger.CrashLog` is a fixed-size ring of log lines. `dump()` writes it
  to a file between a header and a footer.
- `pufu.terminal.Terminal` logs messages above the prompt. It keeps separate
  history for ten workspaces and can switch between them. `RawInput` reads
  single keys without echo.
- `pufu.crystal.load_netlist` reads a netlist file. In `.pufu` files only the
  `_claw::init` block counts. `Crystal.step()` propagates signals until they
  are stable and prints the `AXE` gates. `STA` gates write their data to
  `nube.txt`, or to the `store_path` you give.
- `pufu.meow.MeowInterpreter` runs Meow UI scripts against an engine object
  that you supply. Two example statements: `btn = "OkButton"` and
  `btn.create(type: "Button")`. Setters such as `rect`, `color`, `label` and
  `onclick` become calls to the engine's `set_vec4`, `set_vec3`, `set_string`
  and `bind_event`.
- `pufu.labeloid.Labeloid` reads the `_pufu::meow` block inside
  `_pufu::init` … `_pufu::stop`. It calls `scene.create_entity(name)` for each
  `name = "value"` declaration, and hands other lines to a line handler that
  you supply.
- `pufu.hot_reload.HotReload` polls a file's modification time and size. It
  parses the file again when either one changes.
- `pufu.watchdog.Watchdog` is a timer thread. If it is not disarmed in time,
  it calls the rollback function. If no rollback function is set, it ends the
  process.
- `pufu.task_manager.TaskManager` checks for changed nodes and runs the
  arbiter again when any have changed.

## What it does not do

- No arithmetic unit or syscall handler is built in. The `pufu` command runs
  nodes without either. In that setting `add`, `sub` and `cmp` leave registers
  and flags unchanged, and syscalls do nothing.
- There is no graphics or UI engine and no scene store. `MeowInterpreter` and
  `Labeloid` only call the engine or scene object you pass in.
- Crystal nodes started by the `pufu` command have no netlist loaded, so they
  print an empty line on each step. Call `Crystal.load()` yourself to give one
  a netlist.