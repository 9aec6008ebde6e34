# users/serializers.py

from rest_framework import serializers

from users.models import Address


# ---------------- SAVED ADDRESS ----------------
class AddressSerializer(serializers.ModelSerializer):
    """
    camelCase address shape shared by the address book and order payloads.
    """

    firstName = serializers.CharField(source="first_name", max_length=100)
    lastName = serializers.CharField(source="last_name", max_length=100)
    address2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    class Meta:
        model = Address
        fields = [
            "id",
            "firstName",
            "lastName",
            "address1",
            "address2",
            "city",
            "province",
            "zip",
            "country",
            "phone",
        ]
        read_only_fields = ["id"]
