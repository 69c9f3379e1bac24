import streamlit as st

from src.config import get_settings
from src.models.events import TECHELONS_EVENTS, effective_registration_status, get_event_by_id
from src.app.frontend.form_state import PersonForm, RegistrationForm, submit_registration
from src.utils.validation import COLLEGE_CHOICES, OTHER_COLLEGE, YEAR_CHOICES, CollegeIdDocument

OPEN_EVENTS = [event for event in TECHELONS_EVENTS if effective_registration_status(event.registration_status) == "open"]

def main():
    st.set_page_config(
        page_title="Techelons-25 Registration",
        page_icon="🎯",
        layout="centered"
    )

    st.title("🎯 Techelons-25")
    st.subheader("Registration")
    st.markdown("---")

    form = get_form()

    if not OPEN_EVENTS:
        st.warning("Registrations are closed at the moment.")
        return

    event_selector(form)
    person_fields(form.registrant, key="registrant")
    registrant_details(form)
    team_section(form)

    if st.button("📨 Submit Registration", type="primary", disabled=form.is_submitting):
        submit(form)

def get_form() -> RegistrationForm:
    """Keep one form per browser session; apply ?preselect=<id> once"""
    if "registration_form" not in st.session_state:
        form = RegistrationForm()
        preselect = st.query_params.get("preselect")
        if form.preselect(preselect):
            st.toast(f"🎯 Event preselected: {form.selected_event.name}")
        st.session_state.registration_form = form
    return st.session_state.registration_form

def event_selector(form: RegistrationForm):
    options = [event.id for event in OPEN_EVENTS]
    if form.selected_event_id and form.selected_event_id not in options:
        options.insert(0, form.selected_event_id)
    index = options.index(form.selected_event_id) if form.selected_event_id in options else None

    choice = st.selectbox(
        "Event",
        options,
        index=index,
        format_func=lambda event_id: get_event_by_id(event_id).name,
        placeholder="Select Event",
        disabled=form.event_locked
    )
    if choice and choice != form.selected_event_id and form.select_event(choice):
        st.toast(f"🎯 You've selected: {form.selected_event.name}")

    event = form.selected_event
    if event:
        st.info(f"You've selected: **{event.name}**" + (f"\n\n{event.short_description}" if event.short_description else ""))

def person_fields(person: PersonForm, key: str):
    col1, col2 = st.columns(2)
    with col1:
        person.name = st.text_input("Full Name", value=person.name, key=f"{key}_name")
        person.phone = st.text_input("Phone Number", value=person.phone, key=f"{key}_phone")
    with col2:
        person.email = st.text_input("Email", value=person.email, key=f"{key}_email")
        person.roll_no = st.text_input("Roll Number", value=person.roll_no, key=f"{key}_roll_no")

    college = st.radio(
        "College",
        COLLEGE_CHOICES,
        index=COLLEGE_CHOICES.index(person.college) if person.college in COLLEGE_CHOICES else None,
        key=f"{key}_college",
        horizontal=True
    )
    if college:
        person.set_college(college)
    if person.college == OTHER_COLLEGE:
        person.other_college = st.text_input("College Name", value=person.other_college, key=f"{key}_other_college")

    uploaded = st.file_uploader(
        "College ID (jpg, png or pdf, max 5MB)",
        type=["jpg", "jpeg", "png", "pdf"],
        key=f"{key}_college_id"
    )
    if uploaded is not None:
        person.college_id = CollegeIdDocument(
            filename=uploaded.name,
            content_type=uploaded.type,
            content=uploaded.getvalue()
        )
        error = person.errors().get("collegeId")
        if error:
            st.error(f"📁 {error}")

def registrant_details(form: RegistrationForm):
    col1, col2 = st.columns(2)
    with col1:
        form.course = st.text_input("Course", value=form.course, key="course")
    with col2:
        year = st.selectbox(
            "Year",
            YEAR_CHOICES,
            index=YEAR_CHOICES.index(form.year) if form.year in YEAR_CHOICES else None,
            placeholder="Select Year",
            key="year"
        )
        form.year = year or ""
    form.query = st.text_area("Any queries? (optional)", value=form.query, max_chars=500, key="query")

def team_section(form: RegistrationForm):
    if not form.team_section_visible:
        return

    lowest, highest = form.member_bounds
    st.markdown("---")
    st.subheader("👥 Team Members")
    st.caption(f"Add between {lowest} and {highest} team members besides yourself.")

    for index, member in enumerate(form.members[:form.team_member_count]):
        with st.expander(f"Team member {index + 1}", expanded=True):
            person_fields(member, key=f"member_{index}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("➕ Add Member", disabled=form.team_member_count >= highest):
            if form.add_member():
                st.toast(f"👤 Team member added. Total members: {form.team_member_count}")
            st.rerun()
    with col2:
        if st.button("➖ Remove Member", disabled=form.team_member_count <= lowest):
            if form.remove_member():
                st.toast(f"👤 Team member removed. Total members: {form.team_member_count}")
            st.rerun()

def submit(form: RegistrationForm):
    event_name = form.selected_event.name if form.selected_event else "Techelons-25"
    with st.spinner(f"Submitting your registration for {event_name}..."):
        outcome = submit_registration(form, api_base_url=get_settings().api_base_url)

    if not outcome.success:
        st.error(f"❌ {outcome.message}")
        if outcome.hint:
            st.info(outcome.hint)
        return

    st.success(f"🎉 {outcome.message}")
    if outcome.warning:
        st.warning(f"⚠️ {outcome.warning}")
    elif not outcome.already_registered:
        st.info("📧 A confirmation email has been sent to your email address")
    st.link_button("View your registration", outcome.redirect_url)

if __name__ == "__main__":
    main()
