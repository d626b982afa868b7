"""
Tests for prompt construction.
"""

import json

from guest_automation.models.context import HistoryEntry, MessageContext, PropertyContext
from guest_automation.models.property import Property
from guest_automation.models.summary import Category, Priority, Summary
from guest_automation.prompts import (
    PROPERTY_INFO_UNAVAILABLE,
    build_property_info,
    build_reply_prompt,
    build_summary_prompt,
)
from guest_automation.prompts.generate_reply import field_label, format_faqs, reply_tone

from conftest import BASE_TIME


class TestSummaryPrompt:
    def test_includes_message_history_and_names(self):
        context = MessageContext(
            property=PropertyContext(id=3, name='Seaside Loft'),
            conversation_history=[
                HistoryEntry(text='Hi there', type='Inbound', timestamp=BASE_TIME),
                HistoryEntry(text='Welcome!', type='Outbound', timestamp=BASE_TIME),
            ],
        )

        messages = build_summary_prompt(context, 'Is the pool open?')

        assert messages[0]['role'] == 'system'
        user = messages[1]['content']
        assert 'Property: Seaside Loft' in user
        assert 'Guest: Guest' in user
        assert '"Is the pool open?"' in user
        assert 'Inbound: Hi there\nOutbound: Welcome!' in user
        assert '"actionRequired"' in user


class TestPropertyInfo:
    """Test the property information block."""

    def test_unavailable_without_property(self):
        assert build_property_info(None) == PROPERTY_INFO_UNAVAILABLE

    def test_known_fields_then_extras(self, sample_property):
        info = build_property_info(sample_property)
        lines = info.splitlines()

        assert lines[0] == 'Property Information:'
        assert '- Property Name: Seaside Loft' in lines
        assert '- WiFi Password: sunny-days' in lines
        assert lines[-1] == '- Hot Tub Hours: 8am-10pm'

    def test_blank_and_null_values_skipped(self):
        prop = Property(
            id=1,
            property_title='Cabin',
            house_rules='   ',
            pet_policy='null',
            extra_attributes={'sauna': None, 'boat_rental': 'null'},
        )

        info = build_property_info(prop)

        assert info == 'Property Information:\n- Property Name: Cabin'

    def test_field_label(self):
        assert field_label('local_area_info') == 'Local Area Info'

    def test_field_label_keeps_inner_capitals(self):
        assert field_label('wifi_SSID') == 'Wifi SSID'

    def test_name_and_address_columns_fill_in(self):
        prop = Property(
            id=1,
            extra_attributes={'name': 'Hill Cabin', 'address': '4 Ridge Lane', 'sauna': 'yes'},
        )

        info = build_property_info(prop)

        assert info.splitlines() == [
            'Property Information:',
            '- Property Name: Hill Cabin',
            '- Address: 4 Ridge Lane',
            '- Sauna: yes',
        ]

    def test_extras_repeating_a_shown_value_skipped(self):
        prop = Property(
            id=1,
            property_title='Cabin',
            wifi_password='pine-trees',
            extra_attributes={'name': 'Cabin', 'guest_wifi_password': 'pine-trees'},
        )

        info = build_property_info(prop)

        assert info == 'Property Information:\n- Property Name: Cabin\n- WiFi Password: pine-trees'


class TestReplyPrompt:
    def test_includes_summary_faqs_and_tone(self, sample_property):
        summary = Summary(
            action_required=True,
            category=Category.COMPLAINT,
            priority=Priority.HIGH,
            tone='frustrated',
        )

        messages = build_reply_prompt(summary, sample_property)
        user = messages[1]['content']

        assert json.dumps(summary.to_output(), indent=2) in user
        assert 'Q: Is parking available?\nA: Yes, one space in the garage.' in user
        assert 'Can I bring a pet?' not in user
        assert 'empathetic and apologetic' in user

    def test_no_faqs(self):
        summary = Summary(action_required=True, category=Category.GENERAL, priority=Priority.LOW)

        user = build_reply_prompt(summary, None)[1]['content']

        assert PROPERTY_INFO_UNAVAILABLE in user
        assert 'Available FAQs:\nNone' in user
        assert format_faqs([]) == 'None'
        assert reply_tone(summary) == 'friendly and professional'
