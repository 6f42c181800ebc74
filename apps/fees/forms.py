from django import forms


class FeeQuoteForm(forms.Form):
    transaction_type = forms.CharField(max_length=50, required=False)
    amount_cents = forms.IntegerField(min_value=0)


class FeeHistoryForm(forms.Form):
    limit = forms.IntegerField(min_value=1, max_value=100, required=False)
