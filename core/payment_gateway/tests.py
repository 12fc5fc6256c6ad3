"""
PayAid Payment Gateway Tests - DSP

Tests für Signatur, HTTP-Client, Order-Erstellung und Callback-Verarbeitung.
Der PayAid-Server wird nie kontaktiert; alle HTTP-Aufrufe laufen gegen eine
gemockte `requests.Session`.

Author: DSP Development Team
Date: 2025-10-02
"""

from decimal import Decimal
from unittest import mock

import requests
from django.contrib.auth.models import User
from django.core.exceptions import ImproperlyConfigured
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from elearning.courses.models import Course, CoursePriceOption
from elearning.enrollments.models import Enrollment, EnrollmentStatus

from .callbacks import CallbackVerifier, SOURCE_GATEWAY, SOURCE_PAYLOAD, normalize_payload
from .client import PayAidClient, parse_response_code
from .exceptions import CallbackIntegrityError, GatewayUnavailable, MalformedPayload, OrderValidationError
from .orders import OrderService, normalize_amount
from .signing import CanonicalSigner, canonical_string, sign_fields, signatures_match
from .views import CreatePayAidOrderView, PayAidCallbackView

SALT = "SALT"
API_KEY = "KEY-123"

# SHA-512("SALT|1|2"), uppercase hex
KNOWN_DIGEST = (
    "4154E977D7255F16C2242ACEC8E0A9301ACAA1EDFB75CFDFF0FF963D0D010168"
    "7F258A111DC74BB9D036AA5D5200D79AA23B0283A0190DC66D715422FD572FFE"
)

GATEWAY_SETTINGS = dict(
    PAYAID_API_KEY=API_KEY,
    PAYAID_SALT=SALT,
    PAYAID_BASE_URL="https://sandbox.payaid.test",
    PAYAID_MODE="TEST",
    PAYAID_DEFAULT_CURRENCY="INR",
    PAYAID_RECONFIRM_STATUS=False,
)


def fake_response(status_code=200, body=None, json_error=False):
    response = mock.Mock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def fake_session(response=None, error=None):
    session = mock.Mock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return session


class SigningTests(SimpleTestCase):
    def test_known_digest(self):
        self.assertEqual(sign_fields({"a": "1", "b": "2"}, SALT), KNOWN_DIGEST)

    def test_digest_is_uppercase_hex_of_sha512_length(self):
        digest = sign_fields({"order_id": "A-1"}, SALT)
        self.assertEqual(len(digest), 128)
        self.assertEqual(digest, digest.upper())

    def test_field_order_does_not_matter(self):
        first = {"b": "2", "a": "1"}
        second = {"a": "1", "b": "2"}
        self.assertEqual(sign_fields(first, SALT), sign_fields(second, SALT))

    def test_blank_and_none_values_are_skipped(self):
        fields = {"a": "1", "b": "2", "c": "", "d": None, "e": "   "}
        self.assertEqual(canonical_string(fields, SALT), "SALT|1|2")
        self.assertEqual(sign_fields(fields, SALT), KNOWN_DIGEST)

    def test_values_are_trimmed(self):
        self.assertEqual(sign_fields({"a": " 1 ", "b": "2\n"}, SALT), KNOWN_DIGEST)

    def test_hash_field_is_excluded(self):
        self.assertEqual(sign_fields({"a": "1", "b": "2", "hash": "whatever"}, SALT), KNOWN_DIGEST)

    def test_signatures_match_is_case_insensitive(self):
        self.assertTrue(signatures_match(KNOWN_DIGEST, KNOWN_DIGEST.lower()))
        self.assertFalse(signatures_match(KNOWN_DIGEST, ""))
        self.assertFalse(signatures_match(KNOWN_DIGEST, None))
        self.assertFalse(signatures_match(KNOWN_DIGEST, KNOWN_DIGEST[:-1] + "0"))

    def test_attach_and_verify(self):
        signer = CanonicalSigner(SALT)
        signed = signer.attach({"order_id": "A-1", "amount": "10.00"})
        self.assertTrue(signer.verify(signed))

        signed["amount"] = "1.00"
        self.assertFalse(signer.verify(signed))

    def test_other_secret_does_not_verify(self):
        signed = CanonicalSigner(SALT).attach({"order_id": "A-1"})
        self.assertFalse(CanonicalSigner("OTHER").verify(signed))

    def test_repr_hides_secret(self):
        self.assertNotIn(SALT, repr(CanonicalSigner(SALT)))

    def test_blank_secret_is_refused(self):
        for secret in ("", "   ", None):
            with self.subTest(secret=secret):
                with self.assertRaises(ImproperlyConfigured):
                    CanonicalSigner(secret)

    def test_json_scalars_are_rendered_like_the_gateway(self):
        self.assertEqual(canonical_string({"a": False, "b": 2.5}, SALT), "SALT|false|2.5")
        self.assertEqual(
            sign_fields({"a": True, "b": 1499.0}, SALT),
            sign_fields({"a": "true", "b": "1499"}, SALT),
        )
        self.assertEqual(sign_fields({"a": 1, "b": 2.0}, SALT), KNOWN_DIGEST)


class PayAidClientTests(SimpleTestCase):
    base_url = "https://sandbox.payaid.test"

    def make_client(self, session):
        return PayAidClient(self.base_url, timeout=5, session=session)

    def test_rejects_plain_http_base_url(self):
        with self.assertRaises(ValueError):
            PayAidClient("http://sandbox.payaid.test")

    def test_create_payment_url(self):
        session = fake_session(
            fake_response(body={"data": {"url": "https://pay.example/abc", "uuid": "u-1"}})
        )
        link = self.make_client(session).create_payment_url({"order_id": "A-1"})

        self.assertEqual(link.payment_url, "https://pay.example/abc")
        self.assertEqual(link.correlation_id, "u-1")
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://sandbox.payaid.test/v2/getpaymentrequesturl")
        self.assertEqual(kwargs["timeout"], 5)
        self.assertTrue(kwargs["verify"])

    def test_timeout_maps_to_gateway_unavailable(self):
        client = self.make_client(fake_session(error=requests.Timeout()))
        with self.assertRaises(GatewayUnavailable):
            client.create_payment_url({"order_id": "A-1"})

    def test_connection_error_maps_to_gateway_unavailable(self):
        client = self.make_client(fake_session(error=requests.ConnectionError()))
        with self.assertRaises(GatewayUnavailable):
            client.query_status({"order_id": "A-1"})

    def test_non_2xx_maps_to_gateway_unavailable(self):
        client = self.make_client(fake_session(fake_response(status_code=503, body={})))
        with self.assertRaises(GatewayUnavailable) as ctx:
            client.create_payment_url({"order_id": "A-1"})
        self.assertEqual(ctx.exception.upstream_status, 503)
        self.assertEqual(ctx.exception.status_code, 502)

    def test_malformed_body_maps_to_gateway_unavailable(self):
        client = self.make_client(fake_session(fake_response(body={"data": {}})))
        with self.assertRaises(GatewayUnavailable):
            client.create_payment_url({"order_id": "A-1"})

        client = self.make_client(fake_session(fake_response(json_error=True)))
        with self.assertRaises(GatewayUnavailable):
            client.create_payment_url({"order_id": "A-1"})

    def test_query_status_reads_first_record(self):
        body = {"data": [{"response_code": "0"}, {"response_code": 1000}]}
        status_ = self.make_client(fake_session(fake_response(body=body))).query_status({})
        self.assertTrue(status_.is_success)

    def test_query_status_empty_data(self):
        client = self.make_client(fake_session(fake_response(body={"data": []})))
        with self.assertRaises(GatewayUnavailable):
            client.query_status({})

    def test_query_status_without_numeric_code(self):
        for record in ({}, {"response_code": "abc"}, {"response_code": None}):
            with self.subTest(record=record):
                client = self.make_client(fake_session(fake_response(body={"data": [record]})))
                with self.assertRaises(GatewayUnavailable):
                    client.query_status({})

    def test_parse_response_code(self):
        self.assertEqual(parse_response_code("0"), 0)
        self.assertEqual(parse_response_code(1043), 1043)
        self.assertIsNone(parse_response_code("abc"))
        self.assertIsNone(parse_response_code(None))


@override_settings(**GATEWAY_SETTINGS)
class OrderServiceTests(SimpleTestCase):
    def setUp(self):
        self.client_mock = mock.Mock(spec=PayAidClient)
        self.client_mock.create_payment_url.return_value = mock.Mock(
            payment_url="https://pay.example/abc", correlation_id="u-1"
        )
        self.service = OrderService(client=self.client_mock)
        self.data = {
            "amount": "1499.5",
            "order_id": "ORD-1",
            "name": "Asha Rao",
            "email": "asha@example.com",
            "return_url": "https://app.example/return",
            "udf1": "7",
            "udf2": "3",
            "udf3": "11",
            "city": "Pune",
        }

    def test_normalize_amount(self):
        self.assertEqual(normalize_amount("1499.5"), "1499.50")
        self.assertEqual(normalize_amount(10), "10.00")
        self.assertEqual(normalize_amount("0.005"), "0.01")
        self.assertEqual(normalize_amount("99999999.99"), "99999999.99")
        for bad in ("abc", "0", "-5", "", "NaN", "Infinity", "1e30", "123456789", "0.001"):
            with self.assertRaises(OrderValidationError):
                normalize_amount(bad)

    def test_missing_fields_are_reported(self):
        with self.assertRaises(OrderValidationError) as ctx:
            self.service.create_order({"amount": "10", "email": " "})
        self.assertEqual(ctx.exception.missing_fields, ["order_id", "name", "email", "return_url"])
        self.client_mock.create_payment_url.assert_not_called()

    def test_build_order_is_signed_with_defaults(self):
        params = self.service.build_order(self.data)

        self.assertEqual(params["amount"], "1499.50")
        self.assertEqual(params["currency"], "INR")
        self.assertEqual(params["description"], "Payment for ORD-1")
        self.assertEqual(params["api_key"], API_KEY)
        self.assertEqual(params["mode"], "TEST")
        self.assertEqual((params["udf1"], params["udf2"], params["udf3"]), ("7", "3", "11"))
        self.assertTrue(CanonicalSigner(SALT).verify(params))

    def test_create_order_returns_payment_link(self):
        result = self.service.create_order(self.data).to_dict()

        self.assertTrue(result["success"])
        self.assertEqual(result["paymentUrl"], "https://pay.example/abc")
        self.assertEqual(result["uuid"], "u-1")
        self.assertEqual(result["receivedParams"]["city"], "Pune")
        self.assertEqual(result["receivedParams"]["udf2"], "3")
        sent = self.client_mock.create_payment_url.call_args[0][0]
        self.assertIn("hash", sent)

    def test_gateway_error_propagates(self):
        self.client_mock.create_payment_url.side_effect = GatewayUnavailable("down")
        with self.assertRaises(GatewayUnavailable):
            self.service.create_order(self.data)

    def test_blank_salt_is_refused(self):
        with override_settings(PAYAID_SALT="  "):
            with self.assertRaises(ImproperlyConfigured):
                OrderService(client=self.client_mock)


@override_settings(**GATEWAY_SETTINGS)
class CallbackVerifierTests(SimpleTestCase):
    def setUp(self):
        self.signer = CanonicalSigner(SALT)
        self.payload = self.signer.attach(
            {
                "order_id": "ORD-1",
                "transaction_id": "TXN-1",
                "amount": "1499.50",
                "response_code": "0",
                "udf1": "7",
                "udf2": "3",
            }
        )

    def test_tampered_payload_is_rejected(self):
        self.payload["amount"] = "1.00"
        with self.assertRaises(CallbackIntegrityError):
            CallbackVerifier(reconfirm=False).verify(self.payload)

    def test_missing_hash_is_rejected(self):
        del self.payload["hash"]
        with self.assertRaises(CallbackIntegrityError):
            CallbackVerifier(reconfirm=False).verify(self.payload)

    def test_payload_code_decides_without_reconfirmation(self):
        verified = CallbackVerifier(reconfirm=False).verify(self.payload)
        self.assertTrue(verified.confirmed)
        self.assertEqual(verified.confirmation_source, SOURCE_PAYLOAD)
        self.assertEqual(verified.student_ref, "7")
        self.assertEqual(verified.course_ref, "3")
        self.assertIsNone(verified.option_ref)

    def test_failed_payment_is_not_an_error(self):
        payload = self.signer.attach(dict(self.payload, response_code="1043"))
        verified = CallbackVerifier(reconfirm=False).verify(payload)
        self.assertFalse(verified.confirmed)

    def test_non_object_body_is_malformed(self):
        with self.assertRaises(MalformedPayload):
            normalize_payload([1])
        with self.assertRaises(MalformedPayload):
            CallbackVerifier(reconfirm=False).verify("order_id=ORD-1")
        self.assertEqual(normalize_payload(None), {})

    def test_gateway_answer_is_authoritative(self):
        client = mock.Mock(spec=PayAidClient)
        client.query_status.return_value = mock.Mock(is_success=False, raw={"response_code": 1000})

        verified = CallbackVerifier(client=client, reconfirm=True).verify(self.payload)

        self.assertFalse(verified.confirmed)
        self.assertEqual(verified.confirmation_source, SOURCE_GATEWAY)
        query = client.query_status.call_args[0][0]
        self.assertEqual(query["transaction_id"], "TXN-1")
        self.assertEqual(query["api_key"], API_KEY)
        self.assertTrue(self.signer.verify(query))

    def test_unreachable_gateway_falls_back_to_payload(self):
        client = mock.Mock(spec=PayAidClient)
        client.query_status.side_effect = GatewayUnavailable("down")

        verified = CallbackVerifier(client=client, reconfirm=True).verify(self.payload)

        self.assertTrue(verified.confirmed)
        self.assertEqual(verified.confirmation_source, SOURCE_PAYLOAD)

    def test_status_record_without_code_falls_back_to_payload(self):
        session = fake_session(fake_response(body={"data": [{}]}))
        client = PayAidClient("https://sandbox.payaid.test", session=session)

        verified = CallbackVerifier(client=client, reconfirm=True).verify(self.payload)

        self.assertTrue(verified.confirmed)
        self.assertEqual(verified.confirmation_source, SOURCE_PAYLOAD)
        session.post.assert_called_once()

    def test_gateway_success_overrides_failed_payload(self):
        payload = self.signer.attach(dict(self.payload, response_code="1043"))
        client = mock.Mock(spec=PayAidClient)
        client.query_status.return_value = mock.Mock(is_success=True, raw={"response_code": 0})

        verified = CallbackVerifier(client=client, reconfirm=True).verify(payload)

        self.assertTrue(verified.confirmed)
        self.assertEqual(verified.confirmation_source, SOURCE_GATEWAY)

    def test_blank_salt_is_refused(self):
        with override_settings(PAYAID_SALT=""):
            with self.assertRaises(ImproperlyConfigured):
                CallbackVerifier(reconfirm=False)


@override_settings(**GATEWAY_SETTINGS)
class CreatePayAidOrderViewTests(TestCase):
    url = "/api/payments/payaid/orders/"

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username="asha", password="pw", email="asha@example.com")

    def setUp(self):
        self.api = APIClient()
        self.api.force_authenticate(self.user)
        session = fake_session(
            fake_response(body={"data": {"url": "https://pay.example/abc", "uuid": "u-1"}})
        )
        service = OrderService(client=PayAidClient("https://sandbox.payaid.test", session=session))
        patcher = mock.patch.object(CreatePayAidOrderView, "get_order_service", return_value=service)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.session = session

    def order(self, **overrides):
        data = {
            "amount": "1499",
            "order_id": "ORD-1",
            "name": "Asha Rao",
            "email": "asha@example.com",
            "return_url": "https://app.example/return",
            "udf2": "3",
        }
        data.update(overrides)
        return data

    def test_requires_authentication(self):
        response = APIClient().post(self.url, self.order(), format="json")
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_creates_order(self):
        response = self.api.post(self.url, self.order(), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["paymentUrl"], "https://pay.example/abc")
        self.assertEqual(body["uuid"], "u-1")
        sent = self.session.post.call_args[1]["json"]
        # udf1 falls back to the authenticated student
        self.assertEqual(sent["udf1"], str(self.user.pk))

    def test_missing_fields(self):
        response = self.api.post(self.url, self.order(name="", return_url=""), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["missing"], ["name", "return_url"])
        self.session.post.assert_not_called()

    def test_gateway_failure(self):
        self.session.post.side_effect = requests.ConnectionError()
        response = self.api.post(self.url, self.order(), format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.json()["message"], "Order creation failed")

    def test_non_object_body(self):
        response = self.api.post(self.url, [1, 2], format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("message", response.json())
        self.session.post.assert_not_called()


@override_settings(**dict(GATEWAY_SETTINGS, PAYAID_SALT=""))
class UnconfiguredGatewayViewTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = User.objects.create_user(username="asha", password="pw", email="asha@example.com")
        cls.course = Course.objects.create(title="Data Engineering", stages=[{"title": "Basics"}])

    def test_order_endpoint_refuses_to_sign(self):
        api = APIClient()
        api.force_authenticate(self.student)
        order = {
            "amount": "1499",
            "order_id": "ORD-1",
            "name": "Asha Rao",
            "email": "asha@example.com",
            "return_url": "https://app.example/return",
        }

        with self.assertLogs("core.payment_gateway.views", level="ERROR"):
            response = api.post("/api/payments/payaid/orders/", order, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()["message"], "Payment gateway is not configured")

    def test_unsalted_callback_is_not_accepted(self):
        fields = {
            "order_id": "ORD-1",
            "transaction_id": "TXN-1",
            "amount": "1499.00",
            "response_code": "0",
            "udf1": str(self.student.pk),
            "udf2": str(self.course.pk),
        }
        fields["hash"] = sign_fields(fields, "")

        with self.assertLogs("core.payment_gateway.views", level="ERROR"):
            response = self.client.post("/api/payments/payaid/callback/", fields)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.content.decode(), "Server error")
        self.assertFalse(Enrollment.objects.exists())


@override_settings(**GATEWAY_SETTINGS)
class PayAidCallbackViewTests(TestCase):
    url = "/api/payments/payaid/callback/"

    @classmethod
    def setUpTestData(cls):
        cls.student = User.objects.create_user(username="asha", password="pw", email="asha@example.com")
        cls.course = Course.objects.create(title="Data Engineering", stages=[{"title": "Basics"}])
        cls.option = CoursePriceOption.objects.create(course=cls.course, label="Weekend", price=Decimal("1499.00"))

    def callback(self, **overrides):
        fields = {
            "order_id": "ORD-1",
            "transaction_id": "TXN-1",
            "amount": "1499.00",
            "response_code": "0",
            "udf1": str(self.student.pk),
            "udf2": str(self.course.pk),
            "udf3": str(self.option.pk),
        }
        fields.update(overrides)
        return CanonicalSigner(SALT).attach(fields)

    def test_successful_payment_creates_enrollment(self):
        response = self.client.post(self.url, self.callback())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content.decode(), "OK")
        enrollment = Enrollment.objects.get(student=self.student, course=self.course)
        self.assertEqual(enrollment.status, EnrollmentStatus.ENROLLED)
        self.assertEqual(enrollment.external_transaction_id, "TXN-1")
        self.assertEqual(enrollment.selected_option, self.option)

    def test_repeated_delivery_is_acknowledged_once(self):
        self.client.post(self.url, self.callback())
        response = self.client.post(self.url, self.callback())

        self.assertEqual(response.content.decode(), "Already enrolled")
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_hash_mismatch(self):
        payload = self.callback()
        payload["amount"] = "1.00"
        with self.assertLogs("core.payment_gateway.views", level="WARNING"):
            response = self.client.post(self.url, payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.content.decode(), "Hash mismatch")
        self.assertFalse(Enrollment.objects.exists())

    def test_failed_payment(self):
        response = self.client.post(self.url, self.callback(response_code="1043"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content.decode(), "Payment failed")
        self.assertFalse(Enrollment.objects.exists())

    def test_unknown_course_is_invalid_mapping(self):
        response = self.client.post(self.url, self.callback(udf2="999999"))

        self.assertEqual(response.content.decode(), "Invalid mapping")
        self.assertFalse(Enrollment.objects.exists())

    def test_gateway_reconfirmation_overrides_payload(self):
        client = mock.Mock(spec=PayAidClient)
        client.query_status.return_value = mock.Mock(is_success=False, raw={})
        verifier = CallbackVerifier(client=client, reconfirm=True)

        with mock.patch.object(PayAidCallbackView, "get_verifier", return_value=verifier):
            response = self.client.post(self.url, self.callback())

        self.assertEqual(response.content.decode(), "Payment failed")
        self.assertFalse(Enrollment.objects.exists())

    def test_gateway_success_enrolls_despite_failed_payload_code(self):
        client = mock.Mock(spec=PayAidClient)
        client.query_status.return_value = mock.Mock(is_success=True, raw={"response_code": 0})
        verifier = CallbackVerifier(client=client, reconfirm=True)

        with mock.patch.object(PayAidCallbackView, "get_verifier", return_value=verifier):
            response = self.client.post(self.url, self.callback(response_code="1043"))

        self.assertEqual(response.content.decode(), "OK")
        self.assertTrue(Enrollment.objects.filter(student=self.student, course=self.course).exists())

    def test_oversized_amount_is_invalid_mapping(self):
        response = self.client.post(self.url, self.callback(amount="1e30"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content.decode(), "Invalid mapping")
        self.assertFalse(Enrollment.objects.exists())

    def test_non_object_body(self):
        with self.assertLogs("core.payment_gateway.views", level="WARNING"):
            response = self.client.post(self.url, data="[1, 2]", content_type="application/json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.content.decode(), "Invalid payload")
        self.assertFalse(Enrollment.objects.exists())

    def test_unexpected_error_is_server_error(self):
        workflow = mock.Mock()
        workflow.apply.side_effect = RuntimeError("boom")

        with mock.patch.object(PayAidCallbackView, "get_workflow", return_value=workflow):
            with self.assertLogs("core.payment_gateway.views", level="ERROR"):
                response = self.client.post(self.url, self.callback())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.content.decode(), "Server error")
