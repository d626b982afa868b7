"""
Tests for the domain models.

Covers:
- Scenario parsing and the lenient property reference
- Summary/Reply validation of camelCase completion output
- Property row mapping and FAQ validity
- Result serialisation
"""

from datetime import datetime, time, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from guest_automation.models import (
    Category,
    Escalation,
    Faq,
    FollowUp,
    GeneratedResponse,
    Message,
    MessageDirection,
    Priority,
    ProcessingRecord,
    ProcessingType,
    Reply,
    ScenarioData,
    Session,
    SummarizedMessage,
    Summary,
    property_from_row,
)

SESSION_UUID = UUID('14d3b0c2-8f5e-4a61-b7a9-3c2e1f0d9a58')


class TestScenarioData:
    """Test scenario payload parsing."""

    @pytest.mark.parametrize(
        'raw, expected',
        [(5, 5), ('5', 5), (' 12 ', 12), ('abc', None), (None, None), ('', None), (True, None)],
    )
    def test_property_id_parsing(self, raw, expected):
        assert ScenarioData(property_id=raw).property_id == expected

    def test_extra_keys_are_kept(self):
        scenario = ScenarioData.model_validate({'property_id': 1, 'persona': 'picky'})
        assert scenario.model_extra == {'persona': 'picky'}


class TestSession:
    def test_from_row(self):
        created = datetime(2026, 3, 1, tzinfo=timezone.utc)
        session = Session.from_row({
            'id': SESSION_UUID,
            'account_id': 4,
            'scenario_data': {'propertyId': 'x', 'property_id': '17', 'guest_name': 'Sam'},
            'is_active': None,
            'created_at': created,
            'updated_at': None,
        })

        assert session.property_id == 17
        assert session.scenario_data.guest_name == 'Sam'
        assert session.is_active is True
        assert session.created_at == created

    def test_missing_scenario(self):
        session = Session.from_row({'id': SESSION_UUID, 'account_id': 2, 'scenario_data': None})
        assert session.property_id is None

    def test_from_row_with_driver_uuid(self):
        session_id = uuid4()
        session = Session.from_row({'id': session_id, 'account_id': 7, 'scenario_data': {}})

        assert session.id == session_id

    def test_text_id_is_parsed(self):
        session = Session(id=str(SESSION_UUID), account_id=7)
        assert session.id == SESSION_UUID


class TestMessage:
    def test_message_with_driver_uuid(self):
        message = Message(
            message_uuid='MSG_1',
            session_id=SESSION_UUID,
            direction=MessageDirection.INBOUND,
            body='Hello',
            timestamp=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )

        assert message.session_id == SESSION_UUID
        assert message.model_dump(mode='json')['session_id'] == str(SESSION_UUID)


class TestSummary:
    """Test Summary validation."""

    def test_parses_camel_case_payload(self, summary_payload):
        summary = Summary.model_validate(summary_payload)

        assert summary.action_required is True
        assert summary.category == Category.MAINTENANCE
        assert summary.priority == Priority.HIGH
        assert summary.key_information == ['Shower has no hot water']

    def test_labels_are_normalised(self):
        summary = Summary.model_validate({
            'actionRequired': False,
            'category': ' Check-In ',
            'priority': 'URGENT',
            'sentiment': 'Neutral',
        })

        assert summary.category == Category.CHECK_IN
        assert summary.priority == Priority.URGENT
        assert summary.sentiment == 'neutral'

    def test_unknown_category_rejected(self):
        with pytest.raises(PydanticValidationError):
            Summary.model_validate({'actionRequired': True, 'category': 'spa', 'priority': 'low'})

    def test_missing_required_field_rejected(self):
        with pytest.raises(PydanticValidationError):
            Summary.model_validate({'category': 'general', 'priority': 'low'})

    def test_key_information_coerced_to_list(self):
        summary = Summary.model_validate({
            'actionRequired': True,
            'category': 'general',
            'priority': 'low',
            'keyInformation': 'late arrival',
        })
        assert summary.key_information == ['late arrival']

    @pytest.mark.parametrize(
        'priority, sentiment, urgent',
        [('urgent', 'neutral', True), ('low', 'urgent', True), ('high', 'negative', False)],
    )
    def test_is_urgent(self, priority, sentiment, urgent):
        summary = Summary(
            action_required=True,
            category=Category.GENERAL,
            priority=priority,
            sentiment=sentiment,
        )
        assert summary.is_urgent is urgent

    def test_output_uses_camel_case(self, summary_payload):
        output = Summary.model_validate(summary_payload).to_output()

        assert output['actionRequired'] is True
        assert output['keyInformation'] == ['Shower has no hot water']
        assert 'action_required' not in output


class TestReply:
    def test_parses_camel_case_payload(self, reply_payload):
        reply = Reply.model_validate(reply_payload)

        assert reply.requires_follow_up is True
        assert reply.task_type == 'maintenance'

    def test_blank_message_rejected(self):
        with pytest.raises(PydanticValidationError):
            Reply.model_validate({'message': '   '})

    def test_task_type_defaults_to_none(self):
        reply = Reply.model_validate({'message': 'Hello', 'taskType': None})
        assert reply.task_type == 'none'


class TestProperty:
    """Test property row mapping."""

    def test_property_from_row_splits_extras(self):
        prop = property_from_row(
            {
                'id': 3,
                'account_id': 7,
                'property_title': 'Seaside Loft',
                'wifi_password': 'sunny',
                'hot_tub_hours': '8am-10pm',
                'created_at': datetime(2026, 1, 1),
            },
            [{'question': 'Parking?', 'answer': 'Garage'}],
        )

        assert prop.property_title == 'Seaside Loft'
        assert prop.extra_attributes == {'hot_tub_hours': '8am-10pm'}
        assert prop.faqs[0].question == 'Parking?'

    def test_typed_columns_are_rendered_as_text(self):
        prop = property_from_row({
            'id': 3,
            'check_in_time': time(15, 0),
            'bathrooms': Decimal('1.5'),
            'bedrooms': 2,
            'amenities': ['pool', 'wifi'],
            'house_rules': {'quiet_hours': '22:00'},
            'pet_policy': None,
        })

        assert prop.check_in_time == '15:00:00'
        assert prop.bathrooms == '1.5'
        assert prop.bedrooms == '2'
        assert prop.amenities == 'pool, wifi'
        assert prop.house_rules == '{"quiet_hours": "22:00"}'
        assert prop.pet_policy is None

    def test_extra_columns_keep_driver_values(self):
        prop = property_from_row({'id': 3, 'sauna_hours': time(9, 0)})
        assert prop.extra_attributes == {'sauna_hours': time(9, 0)}

    def test_valid_faqs_need_question_and_answer(self, sample_property):
        assert [f.question for f in sample_property.valid_faqs] == ['Is parking available?']
        assert Faq(question=' ', answer='x').is_valid is False


class TestResults:
    def test_summarized_message_to_dict(self, summary_payload):
        summarized = SummarizedMessage(
            message_uuid='MSG_1',
            original_message='No hot water',
            from_number='+15550100',
            summary=Summary.model_validate(summary_payload),
        )

        data = summarized.to_dict()

        assert data['message_uuid'] == 'MSG_1'
        assert data['summary']['actionTitle'] == 'Fix the shower'

    def test_generated_response_to_dict(self, reply_payload):
        reply = Reply.model_validate(reply_payload)
        response = GeneratedResponse(
            message_uuid='RESP_1', generated_from='MSG_1', response=reply.message, metadata=reply
        )

        assert response.to_dict()['metadata']['requiresFollowUp'] is True

    def test_follow_up_type_is_reminder(self):
        assert FollowUp(task_uuid='TASK_1', message='ping').type == 'reminder'

    def test_escalation_to_dict(self, summary_payload):
        escalation = Escalation(
            message_uuid='MSG_1',
            reason='Urgent guest request',
            summary=Summary.model_validate(summary_payload),
            recommended_action='Immediate host attention required',
        )
        assert escalation.to_dict()['summary']['category'] == 'maintenance'

    def test_processing_record_key(self):
        record = ProcessingRecord(
            session_id=SESSION_UUID,
            message_uuid='MSG_1',
            processing_type=ProcessingType.SUMMARIZATION,
            ai_model='gpt-4o-mini',
        )
        assert record.key == (SESSION_UUID, 'MSG_1', 'summarization')
