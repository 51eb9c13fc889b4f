# -*- coding: utf-8 -*-
"""
Configure and arm a running wfmserver over the SCPI control plane.

Start a server first:

    wfmserver serve -n mock
"""

from loguru import logger

from wfmserver.server import ScpiClient

with ScpiClient("127.0.0.1", 5025) as scope:
    logger.info("Connected to {}", scope.query("*IDN?"))
    logger.info("{} channel(s)", scope.query("CHANS?"))
    logger.info("Sample intervals (fs): {}", scope.query("RATES?"))

    scope.send("C1:ON")
    scope.send("C1:RANGE 2")
    scope.send("RATE 1e9")
    scope.send("DEPTH 65536")

    scope.send("TRIG:MODE EDGE")
    scope.send("TRIG:EDGE:DIR RISING")
    scope.send("TRIG:LEV 0.1")
    scope.send("TRIG:SOU C1")
    scope.send("TRIG:DELAY 1000000")

    scope.send("SINGLE")
    # changing a setting while armed re-arms the capture
    scope.send("TRIG:LEV 0.2")
    scope.send("STOP")
    scope.send("EXIT")
