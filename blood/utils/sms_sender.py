"""Single-message SNS helper used by the notification service."""

from __future__ import annotations

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings


def get_sns_client():
	return boto3.client("sns", region_name=settings.AWS_SNS_REGION)


def message_attributes() -> dict:
	attributes = {
		'AWS.SNS.SMS.SMSType': {'DataType': 'String', 'StringValue': settings.AWS_SNS_SMS_TYPE},
	}
	if settings.AWS_SNS_SENDER_ID:
		attributes['AWS.SNS.SMS.SenderID'] = {
			'DataType': 'String',
			'StringValue': settings.AWS_SNS_SENDER_ID[:11],
		}
	return attributes


def send_sms(phone: str, message: str, *, sns_client=None):
	"""Send a one-off SMS via AWS SNS."""

	client = sns_client or get_sns_client()
	try:
		response = client.publish(
			PhoneNumber=phone,
			Message=message,
			MessageAttributes=message_attributes(),
		)
		return {"status": "success", "response": response}
	except (BotoCoreError, ClientError) as exc:
		return {"status": "error", "message": str(exc)}
