"""
Voice provider contract + Twilio implementation.

Callers (dispatcher, Twilio webhook routes) only see VoiceProvider: placing
the notification call and rendering every voice-markup document the call flow
needs. Provider-specific code lives in the concrete class.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import requests
from twilio.twiml.voice_response import Dial, Gather, VoiceResponse

from leadbridge.config import TWILIO_LANGUAGE, TWILIO_PHONE_NUMBER, TWILIO_VOICE, VOICE_PROVIDER

logger = logging.getLogger('services.voice')

# Statuses the provider reports back to /twilio/status
STATUS_CALLBACK_EVENTS = ['initiated', 'ringing', 'answered', 'completed']


class CallPlacementError(Exception):
    """The provider refused or failed to place the call."""


class CallTimeoutError(CallPlacementError):
    """The provider did not answer the placement request in time."""


class VoiceProvider(ABC):
    """Outbound notification call capability."""
    name: str = ''

    @abstractmethod
    def place_call(self, to: str, notification_url: str, status_callback_url: str) -> str:
        """Place a call to `to`; return the provider call id."""
        ...

    @abstractmethod
    def notification_twiml(self, customer_name: str, job_type: str, location: str,
                           action_url: str, budget: Optional[str] = None,
                           timing: Optional[str] = None) -> str:
        """Spoken lead summary followed by a one-digit keypress prompt."""
        ...

    @abstractmethod
    def bridge_twiml(self, customer_phone: Optional[str], action_url: str) -> str:
        """Keypress 1: connect the tradie to the customer."""
        ...

    @abstractmethod
    def skip_twiml(self) -> str:
        """Keypress 2: acknowledge the skip and hang up."""
        ...

    @abstractmethod
    def invalid_input_twiml(self) -> str:
        """Any other keypress."""
        ...


class TwilioVoice(VoiceProvider):
    name = 'twilio'

    def __init__(self, client=None, from_number=None, voice=None, language=None):
        self._client = client
        self.from_number = from_number or TWILIO_PHONE_NUMBER
        self.voice = voice or TWILIO_VOICE
        self.language = language or TWILIO_LANGUAGE

    @property
    def client(self):
        if self._client is None:
            from leadbridge.extensions import twilio_client
            self._client = twilio_client
        return self._client

    def place_call(self, to, notification_url, status_callback_url):
        client = self.client
        if client is None:
            raise CallPlacementError('Twilio client is not configured')
        if not self.from_number:
            raise CallPlacementError('TWILIO_PHONE_NUMBER is not configured')

        try:
            call = client.calls.create(
                to=to,
                from_=self.from_number,
                url=notification_url,
                status_callback=status_callback_url,
                status_callback_event=STATUS_CALLBACK_EVENTS,
                status_callback_method='POST',
            )
        except requests.exceptions.Timeout as e:
            raise CallTimeoutError(f'Twilio call request timed out: {e}') from e
        except Exception as e:
            raise CallPlacementError(str(e)) from e

        logger.info("Twilio call initiated to tradie. CallSid: %s", call.sid)
        return call.sid

    def _say(self, node, text):
        node.say(text, voice=self.voice, language=self.language)

    def notification_twiml(self, customer_name, job_type, location, action_url,
                           budget=None, timing=None):
        parts = [
            'You have a new lead.',
            f'Customer name: {customer_name or "unknown"}.',
            f'Job type: {job_type or "general service"}.',
            f'Location: {location or "not given"}.',
        ]
        if budget:
            parts.append(f'Budget: {budget}.')
        if timing:
            parts.append(f'Timing: {timing}.')
        parts.append('Press 1 to call the customer now, or press 2 to skip this lead.')

        response = VoiceResponse()
        gather = Gather(num_digits=1, action=action_url, method='POST', timeout=10)
        self._say(gather, ' '.join(parts))
        response.append(gather)

        # Reached only when the gather times out
        self._say(response, 'We did not receive any input. Goodbye.')
        response.hangup()
        return str(response)

    def bridge_twiml(self, customer_phone, action_url):
        response = VoiceResponse()
        if not customer_phone:
            self._say(
                response,
                "The customer's number is not available yet. "
                'Please open the lead in your marketplace inbox to contact them. Goodbye.',
            )
            response.hangup()
            return str(response)

        self._say(response, 'Connecting you to the customer now. Please wait.')
        dial = Dial(action=action_url, caller_id=self.from_number)
        dial.number(customer_phone)
        response.append(dial)
        return str(response)

    def skip_twiml(self):
        response = VoiceResponse()
        self._say(response, 'Lead skipped. Goodbye.')
        response.hangup()
        return str(response)

    def invalid_input_twiml(self):
        response = VoiceResponse()
        self._say(
            response,
            'Invalid input. Please press 1 to call the customer or 2 to skip. Goodbye.',
        )
        response.hangup()
        return str(response)


PROVIDERS: Dict[str, Type[VoiceProvider]] = {
    'twilio': TwilioVoice,
}


def get_voice_provider(name: str = None) -> VoiceProvider:
    """Look up and instantiate the configured voice provider."""
    provider_cls = PROVIDERS.get(name or VOICE_PROVIDER)
    if not provider_cls:
        raise ValueError(f"No voice provider registered for '{name or VOICE_PROVIDER}'")
    return provider_cls()
