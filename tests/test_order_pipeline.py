"""Tests for the order state machine."""
import random

import pytest

from conftest import INIT_DC_HTML, make_settings, make_ticket_str, order_happy_path
from rush_12306.exceptions import RequestFailed
from rush_12306.models.order import OrderState
from rush_12306.models.transport import RequestFailure
from rush_12306.services.order_pipeline import OrderPipeline
from rush_12306.services.station_service import StationService
from rush_12306.services.train_selector import TrainSelector


def make_pipeline(platform, passenger_strings, waitlist=None, **overrides):
    return OrderPipeline(
        platform,
        make_settings(**overrides),
        passenger_strings,
        StationService(),
        selector=TrainSelector(random.Random(7)),
        waitlist=waitlist,
    )


def kinds(pipeline):
    return [e.kind for e in pipeline.events]


def states(pipeline):
    return [e.state for e in pipeline.events if e.kind == "transition"]


class TestOrderPipeline:

    @pytest.mark.asyncio
    async def test_preferred_available_train_is_ordered(self, platform, passenger_strings, waitlist):
        """一趟首选车次有票 -> 选中它并完整走完下单流程"""
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913", second="有")])
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert result.succeeded
        assert result.branch == "order"
        assert result.order_id == "E123456789"
        assert result.target.train_number == "D2913"
        assert result.target.priority == 3
        assert result.target.is_config_train is True
        assert states(pipeline) == [
            "tickets_queried", "train_selected", "order_requested", "session_initialized",
            "order_verified", "queue_joined", "queue_confirmed", "polling",
        ]
        assert pipeline.state == OrderState.SUCCEEDED
        waitlist.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_reused_for_every_call(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        await pipeline.run()

        token = "8f3a1c9e0b"
        assert platform.check_order_info.await_args.args[0] == token
        assert platform.get_queue_count.await_args.args[0] == token
        assert platform.confirm_single_for_queue.await_args.args[0] == token
        platform.query_order_wait_time.assert_awaited_with(token)
        platform.basedata_log_background.assert_called_once_with("dc", token)

    @pytest.mark.asyncio
    async def test_request_payloads(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC%2B1", "D2913", train_no="5l000D291300")])
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        await pipeline.run()

        platform.submit_order_request.assert_awaited_once_with("SEC%2B1", "2025-02-07", "灌南", "苏州")
        queue = platform.get_queue_count.await_args.args[1]
        assert queue["train_date"] == "Fri, 07 Feb 2025 00:00:00 GMT"
        assert queue["train_no"] == "5l000D291300"
        assert queue["stationTrainCode"] == "D2913"
        assert queue["seatType"] == "O"
        assert queue["leftTicket"] == "YP0001"
        assert queue["train_location"] == "H6"
        confirm = platform.confirm_single_for_queue.await_args.args[1]
        assert confirm["key_check_isChange"] == "KC0001"
        assert confirm["leftTicketStr"] == "LT%2BABC"
        assert confirm["passengerTicketStr"] == passenger_strings.passenger_ticket_str
        assert confirm["oldPassengerStr"] == passenger_strings.old_passenger_str

    @pytest.mark.asyncio
    async def test_all_exhausted_goes_straight_to_waitlist(self, platform, passenger_strings, waitlist):
        platform.query_tickets.return_value = [
            make_ticket_str("SEC1", "D2913", second="无"),
            make_ticket_str("SEC2", "G7001", second="无"),
        ]
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        platform.submit_order_request.assert_not_awaited()
        platform.init_dc.assert_not_awaited()
        waitlist.run.assert_awaited_once()
        assert result.branch == "waitlist"
        assert result.reserve_no == "HB0001"
        assert pipeline.state == OrderState.WAITLISTED
        assert "waitlist_entry" in kinds(pipeline)
        entry = next(e for e in pipeline.events if e.kind == "waitlist_entry")
        assert entry.data["secret_list"] == "SEC1#O|"
        assert entry.data["plans"] == "SEC2,O#"
        assert waitlist.run.await_args.args[0] is pipeline.plan

    @pytest.mark.asyncio
    async def test_hb_immediately_skips_order(self, platform, passenger_strings, waitlist):
        platform.query_tickets.return_value = [make_ticket_str("SEC1", "D2913", second="有")]
        pipeline = make_pipeline(platform, passenger_strings, waitlist, hb_immediately=True)

        await pipeline.run()

        platform.submit_order_request.assert_not_awaited()
        waitlist.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_verification_failure_enters_waitlist(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [
            make_ticket_str("SEC1", "D2913", second="有"),
            make_ticket_str("SEC2", "G7001", second="5"),
            make_ticket_str("SEC3", "K101", second="无"),
        ])
        platform.check_order_info.return_value = {"submitStatus": False, "errMsg": "余票不足"}
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert result.branch == "waitlist"
        platform.get_queue_count.assert_not_awaited()
        platform.confirm_single_for_queue.assert_not_awaited()

        entry = [e for e in pipeline.events if e.kind == "waitlist_entry"]
        assert len(entry) == 1
        assert entry[0].state == "session_initialized"

        plan, passenger_info = waitlist.run.await_args.args
        assert plan is pipeline.plan
        assert plan.secret_list == "SEC1#O|"
        assert plan.plans == "SEC2,O#SEC3,O#"
        assert passenger_info == passenger_strings.after_nate_passenger_info
        assert waitlist.run.await_args.kwargs["target"].train_number == "D2913"

    @pytest.mark.asyncio
    async def test_missing_queue_admission_aborts(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        platform.get_queue_count.return_value = {"count": "3", "ticket": "0"}
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        assert result.error == "排队失败"
        assert result.state == "failed"
        platform.confirm_single_for_queue.assert_not_awaited()
        waitlist.run.assert_not_awaited()
        assert pipeline.events[-1].kind == "abort"
        assert pipeline.events[-1].data == {"failed_at": "order_verified"}

    @pytest.mark.asyncio
    async def test_polls_until_order_id(self, platform, passenger_strings, waitlist):
        """三次排队中，第四次拿到订单号 -> 只报告一次成功"""
        waiting = {"queryOrderWaitTimeStatus": True, "waitTime": 3, "waitCount": 12}
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")], wait_responses=[
            waiting, waiting, waiting,
            {"queryOrderWaitTimeStatus": True, "orderId": "E900"},
        ])
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert result.succeeded
        assert result.order_id == "E900"
        assert platform.query_order_wait_time.await_count == 4
        assert kinds(pipeline).count("poll") == 4
        assert kinds(pipeline).count("success") == 1

    @pytest.mark.asyncio
    async def test_invalidated_order_fails(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")], wait_responses=[
            {"queryOrderWaitTimeStatus": True},
            {"queryOrderWaitTimeStatus": False},
        ])
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        assert result.error == "订单已失效"

    @pytest.mark.asyncio
    async def test_order_request_rejected(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        platform.submit_order_request.return_value = {"status": False, "messages": ["您还有未处理的订单", "请稍后"]}
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        assert result.error == "您还有未处理的订单;请稍后"
        platform.init_dc.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_session_token_aborts(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        platform.init_dc.return_value = INIT_DC_HTML.replace("globalRepeatSubmitToken", "somethingElse")
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        platform.check_order_info.assert_not_awaited()
        waitlist.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_confirm_rejected(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        platform.confirm_single_for_queue.return_value = {"submitStatus": False, "errMsg": "出票失败"}
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        assert "出票失败" in result.error
        platform.query_order_wait_time.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_station_aborts(self, platform, passenger_strings, waitlist):
        pipeline = make_pipeline(platform, passenger_strings, waitlist, from_station="火星")

        result = await pipeline.run()

        assert not result.succeeded
        assert result.target is None
        platform.query_tickets.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_failure_aborts(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        platform.init_dc.side_effect = RequestFailed(
            RequestFailure(code=403, message="Forbidden", url="https://kyfw.12306.cn/otn/confirmPassenger/initDc",
                           blocked=True))
        pipeline = make_pipeline(platform, passenger_strings, waitlist)

        result = await pipeline.run()

        assert not result.succeeded
        assert "403" in result.error

    @pytest.mark.asyncio
    async def test_on_event_callback(self, platform, passenger_strings, waitlist):
        order_happy_path(platform, [make_ticket_str("SEC1", "D2913")])
        seen = []
        pipeline = OrderPipeline(platform, make_settings(), passenger_strings, StationService(),
                                 waitlist=waitlist, on_event=seen.append)

        await pipeline.run()

        assert seen == pipeline.events
