# -*- coding: utf-8 -*-
"""# wfmserver

SCPI control-plane server for waveform digitizers.

A single TCP client configures the instrument (channels, sample rate, memory
depth, trigger) through line-oriented SCPI commands. The server keeps the
configuration, applies it to the device, and re-arms the trigger whenever the
configuration changes while armed.

- `wfmserver.scpi`: line protocol codec
- `wfmserver.instrument`: instrument state, trigger state machine, command dispatcher
- `wfmserver.server`: connection supervisor, server registry, client helper
- `wfmserver.device`: device implementations (simulated digitizer)
- `wfmserver.system`: instrument configuration files
- `wfmserver.cli`: command-line interface
"""

from ._version import __version__
