import socket

import pytest

from wfmserver.scpi import (
    ConnectionClosed,
    ScpiCommand,
    parse_scpi_line,
    recv_scpi_line,
    send_scpi_reply,
)


class TestParseScpiLine:
    def test_subject_command_and_args(self):
        cmd = parse_scpi_line("C1:OFFS 0.5")
        assert cmd == ScpiCommand("C1", "OFFS", False, ["0.5"])

    def test_bare_command(self):
        cmd = parse_scpi_line("START")
        assert cmd.subject == ""
        assert cmd.command == "START"
        assert not cmd.is_query
        assert cmd.args == []

    def test_query_mark_is_dropped(self):
        cmd = parse_scpi_line("CHANS?")
        assert cmd.command == "CHANS"
        assert cmd.is_query

    def test_common_command_prefix(self):
        cmd = parse_scpi_line("*IDN?")
        assert cmd.command == "IDN"
        assert cmd.is_query

    def test_only_first_colon_splits_subject(self):
        cmd = parse_scpi_line("TRIG:EDGE:DIR RISING")
        assert cmd.subject == "TRIG"
        assert cmd.command == "EDGE:DIR"
        assert cmd.args == ["RISING"]

    def test_comma_separated_args(self):
        cmd = parse_scpi_line("FOO 1,2,3")
        assert cmd.command == "FOO"
        assert cmd.args == ["1", "2", "3"]

    def test_repeated_delimiters_give_no_empty_tokens(self):
        cmd = parse_scpi_line("FOO   1,,2,  3")
        assert cmd.args == ["1", "2", "3"]
        assert all(cmd.args)

    def test_args_are_stripped(self):
        cmd = parse_scpi_line("TRIG:LEV  1.5 ")
        assert cmd.args == ["1.5"]

    def test_empty_line(self):
        assert parse_scpi_line("") == ScpiCommand("", "", False, [])

    def test_no_state_leaks_between_calls(self):
        parse_scpi_line("C2:RANGE? 5,6")
        cmd = parse_scpi_line("STOP")
        assert cmd == ScpiCommand("", "STOP", False, [])

    @pytest.mark.parametrize(
        "line",
        ["C1:ON", "TRIG:SOU C2", "RATE 1e9", "DEPTHS?", "a:b:c? x, y ,z", ",,,", ":"],
    )
    def test_query_flag_matches_question_mark(self, line):
        assert parse_scpi_line(line).is_query == ("?" in line)


@pytest.fixture
def socket_pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


class TestLineFraming:
    def test_newline_terminated(self, socket_pair):
        a, b = socket_pair
        a.sendall(b"C1:ON\n")
        assert recv_scpi_line(b) == "C1:ON"

    def test_semicolon_terminates_a_line(self, socket_pair):
        a, b = socket_pair
        a.sendall(b"C1:ON;C2:ON\n")
        assert recv_scpi_line(b) == "C1:ON"
        assert recv_scpi_line(b) == "C2:ON"

    def test_does_not_read_past_terminator(self, socket_pair):
        a, b = socket_pair
        a.sendall(b"STOP\nEXIT")
        assert recv_scpi_line(b) == "STOP"
        assert b.recv(4) == b"EXIT"

    def test_peer_close_mid_line(self, socket_pair):
        a, b = socket_pair
        a.sendall(b"C1:O")
        a.shutdown(socket.SHUT_WR)
        with pytest.raises(ConnectionClosed):
            recv_scpi_line(b)

    def test_reply_is_newline_terminated(self, socket_pair):
        a, b = socket_pair
        send_scpi_reply(a, "4")
        assert b.recv(16) == b"4\n"

    def test_reply_to_closed_socket(self, socket_pair):
        a, b = socket_pair
        a.close()
        with pytest.raises(ConnectionClosed):
            send_scpi_reply(a, "4")
