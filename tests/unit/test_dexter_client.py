"""
Unit tests for DexterClient against the simulated arm.

The mock transport opens synchronously, so the first command also carries
the on-open status request (sequence 0) in front of it.
"""

import pytest

from dexter import DexterClient
from dexter.client.transports import MockDexterTransport
from dexter.protocol.types import ConnectionState, Joint, JointData
from dexter.protocol.wire import decode_instruction, pack_status_frame


def _numbered(lines):
    """Decoded instructions excluding the fixed queue-clear line."""
    out = []
    for line in lines:
        ins = decode_instruction(line)
        assert ins is not None, line
        if ins["opcode"] != "F":
            out.append(ins)
    return out


@pytest.mark.unit
class TestConfiguration:
    def test_default_url(self):
        client = DexterClient(transport=MockDexterTransport())
        assert client.url == "ws://localhost:3000"

    def test_custom_url(self):
        client = DexterClient(url="ws://10.0.0.80:3000", transport=MockDexterTransport())
        assert client.url == "ws://10.0.0.80:3000"

    def test_no_connection_until_first_command(self, client, mock_transport):
        assert mock_transport.connections == []
        assert client.manager.state is ConnectionState.DISCONNECTED

    def test_connect_opens_and_primes_status(self, client, mock_transport):
        client.connect()
        assert mock_transport.sent == ["1 0 1 undefined g ;"]
        assert client.manager.state is ConnectionState.CONNECTED
        assert client.get_last_oplet() == "g"


@pytest.mark.unit
class TestCommands:
    def test_move_all_joints_wire_format(self, client, mock_transport):
        client.move_all_joints(0, 0, 135, 45, 0)
        assert mock_transport.sent == [
            "1 0 1 undefined g ;",
            "1 1 1 undefined a 0 0 486000 162000 0 ;",
        ]

    def test_move_all_joints_defaults(self, client, mock_transport):
        client.move_all_joints()
        assert mock_transport.sent[-1] == "1 1 1 undefined a 0 0 486000 162000 0 ;"

    def test_pid_move_all_joints_wire_format(self, client, mock_transport):
        client.pid_move_all_joints(10, -20, 30.5, 0, 1)
        assert mock_transport.sent[-1] == "1 1 1 undefined P 36000 -72000 109800 0 3600 ;"

    @pytest.mark.parametrize(
        "angles",
        [(0, 0, 0, 0, 0), (1, 2, 3, 4, 5), (-179.9, 89.25, 0.001, 12.5, -45)],
    )
    def test_joint_fields_equal_rounded_arcseconds(self, client, mock_transport, angles):
        client.move_all_joints(*angles)
        ins = decode_instruction(mock_transport.sent[-1])
        assert ins["opcode"] == "a"
        assert [int(t) for t in ins["payload"]] == [round(a * 3600) for a in angles]

    def test_move_to_wire_format(self, client, mock_transport):
        client.move_to(0, 0.5, 0.075, "0", "0", "-1", "right", "up", "out")
        assert mock_transport.sent[-1] == "1 1 1 undefined M 0 500000 75000 0 0 -1 1 1 1 ;"

    def test_move_to_out_of_menu_flags_are_zero(self, client, mock_transport):
        client.move_to(0.1, 0.2, 0.3, "1", "0", "0", "middle", "down", "")
        ins = decode_instruction(mock_transport.sent[-1])
        assert ins["payload"][:3] == ["100000", "200000", "300000"]
        assert ins["payload"][6:] == ["0", "0", "0"]

    def test_get_robot_status(self, client, mock_transport):
        client.get_robot_status()
        client.get_robot_status()
        assert mock_transport.sent == [
            "1 0 1 undefined g ;",
            "1 1 1 undefined g ;",
            "1 2 1 undefined g ;",
        ]

    def test_send_raw_single_oplet(self, client, mock_transport):
        client.connect()
        seq = client.manager.sequence
        client.send_raw("g")
        assert mock_transport.sent[-1] == f"1 {seq} 1 undefined g ;"

    def test_send_raw_with_payload(self, client, mock_transport):
        client.send_raw("S", "MaxSpeed 25")
        assert mock_transport.sent[-1] == "1 1 1 undefined S MaxSpeed 25 ;"

    def test_empty_instruction_queue_uses_fixed_line(self, client, mock_transport):
        client.move_all_joints()
        client.empty_instruction_queue()
        client.empty_instruction_queue()
        assert mock_transport.sent[-2:] == ["1 1 1 undefined F ;", "1 1 1 undefined F ;"]
        assert client.manager.sequence == 2

    def test_counter_strictly_increases_across_command_types(self, client, mock_transport):
        client.move_all_joints()
        client.empty_instruction_queue()
        client.move_to()
        client.send_raw("g")
        client.pid_move_all_joints()
        client.empty_instruction_queue()
        client.get_robot_status()
        client.reload()
        client.move_all_joints(1, 1, 1, 1, 1)

        seqs = [ins["sequence"] for ins in _numbered(mock_transport.sent)]
        assert seqs == list(range(len(seqs)))

    def test_reload_reconnects_and_reprimes(self, client, mock_transport):
        client.connect()
        client.reload()
        assert len(mock_transport.connections) == 2
        assert mock_transport.connections[0].closed
        assert mock_transport.sent[-1] == "1 1 1 undefined g ;"


@pytest.mark.unit
class TestQueries:
    def test_queries_before_any_frame_read_zero(self, client):
        assert client.get_last("job number") == 0
        assert client.get_last_oplet() == "\x00"
        assert client.get_last_errored() is False
        assert client.get_joint("base", "sin") == 0

    def test_last_values_follow_simulated_arm(self, client):
        client.move_all_joints()
        assert client.get_last("instruction number") == 1
        assert client.get_last_oplet() == "a"
        assert client.get_last_errored() is False
        assert client.get_last("end time") > client.get_last("start time")

    def test_joint_values_follow_move(self, client):
        client.move_all_joints(0, 0, 135, 45, 0)
        assert client.get_joint(Joint.END, JointData.SENT_POSITION) == 486000
        assert client.get_joint("angle", "measured angle") == 162000
        assert client.get_joint("pivot", "position delta") == 0

    def test_unknown_oplet_sets_error_flag(self, client):
        client.send_raw("Z")
        assert client.get_last_oplet() == "Z"
        assert client.get_last_errored() is True

    def test_joint6_and_joint7(self, client, mock_transport):
        client.connect()
        mock_transport.current.push(pack_status_frame({18: 11, 28: 22, 38: 33, 48: 44}))
        assert client.get_joint6("angle") == 11
        assert client.get_joint6("force") == 22
        assert client.get_joint7("position") == 33
        assert client.get_joint7("force") == 44

    def test_default_query_arguments(self, client):
        assert client.get_last() == client.get_last("job number")
        assert client.get_joint() == client.get_joint("base", "sin")
        assert client.get_joint6() == client.get_joint6("angle")
        assert client.get_joint7() == client.get_joint7("position")


@pytest.mark.unit
class TestDisconnects:
    def test_abnormal_close_then_command_reconnects(self, client, mock_transport):
        client.connect()
        mock_transport.current.drop(1006)
        assert client.manager.connection is None
        assert len(mock_transport.connections) == 1

        client.get_robot_status()
        assert len(mock_transport.connections) == 2

    def test_normal_close_reconnects_immediately(self, client, mock_transport):
        client.connect()
        mock_transport.current.drop(1000)
        assert len(mock_transport.connections) == 2
        assert client.manager.state is ConnectionState.CONNECTED

    def test_failed_connect_drops_send(self, mock_url, caplog):
        transport = MockDexterTransport(fail_connect=True)
        client = DexterClient(url=mock_url, transport=transport)
        with caplog.at_level("WARNING"):
            client.move_all_joints()
        assert transport.sent == []
        assert client.manager.state is ConnectionState.CLOSED_ABNORMAL
        assert "dropping" in caplog.text


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_status_returns_fresh_frame(client):
    client.move_all_joints()
    frame = await client.wait_for_status(timeout=1.0)
    assert frame.last_oplet() == "g"
    assert frame.last_value("instruction number") == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_status_times_out_without_reply(mock_url):
    client = DexterClient(url=mock_url, transport=MockDexterTransport(respond=False))
    with pytest.raises(TimeoutError):
        await client.wait_for_status(timeout=0.05)
